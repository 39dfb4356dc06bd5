"""Interactive CLI application."""
import argparse
import asyncio
import logging
import os
import random
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from course_tutor.dashboard import get_course_overview, get_progress_color, get_progress_label
from course_tutor.db import DEFAULT_DB_PATH, init_db
from course_tutor.games import MemoryBoard, check_word_order, shuffled_words, words_from_sentence
from course_tutor.importer import import_file
from course_tutor.models import DialogueMessage, Game, MemoryData, MemoryPair, Question, WordOrderData
from course_tutor.quiz import get_quiz_questions, is_correct, is_passing, record_quiz_result, score_percentage
from course_tutor.seed import ensure_seed, seed_sample_data
from course_tutor.storage import LessonStore
from course_tutor.study import get_lesson_view, mark_lesson_complete

console = Console()
logger = logging.getLogger(__name__)

COURSE_COLORS = ["#0A8F8F", "#F5A623", "#6C5CE7", "#E85D75", "#00B894", "#0984E3"]
COURSE_ICONS = ["code-slash", "globe-outline", "calculator-outline", "book-outline", "flask-outline", "language-outline"]


class SessionExitRequested(Exception):
    """User typed q or menu in the middle of a quiz or game."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return answer


def session_choice(prompt: str, count: int) -> int:
    """Ask for a 1-based choice and return the zero-based index."""
    while True:
        answer = session_prompt(f"{prompt} [1-{count}]").strip()
        if answer.isdigit() and 1 <= int(answer) <= count:
            return int(answer) - 1
        console.print("[red]Pick a number from the list.[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]Course Tutor[/bold]\n[dim]Lessons, quizzes and games[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("courses", "List courses"),
        ("course", "Course progress"),
        ("lesson", "Open a lesson"),
        ("quiz", "Take a lesson quiz"),
        ("game", "Play a lesson game"),
        ("add-course", "Create a course"),
        ("add-lesson", "Add a lesson to a course"),
        ("add-question", "Add a quiz question"),
        ("add-game", "Add a mini-game"),
        ("delete-course", "Delete a course and its lessons"),
        ("delete-lesson", "Delete a lesson"),
        ("import", "Import courses from JSON/YAML"),
        ("reset", "Wipe everything and reload samples"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def pick(items: list, describe, label: str):
    if not items:
        console.print(f"[yellow]No {label}s yet.[/yellow]")
        return None
    for i, item in enumerate(items, 1):
        console.print(f"  [cyan]{i}[/cyan]) {describe(item)}")
    index = IntPrompt.ask(f"Select {label}", choices=[str(i) for i in range(1, len(items) + 1)])
    return items[index - 1]


async def pick_course(store: LessonStore):
    return pick(await store.list_courses(), lambda c: c.title, "course")


async def pick_lesson(store: LessonStore):
    course = await pick_course(store)
    if course is None:
        return None
    return pick(await store.list_lessons(course.id), lambda l: f"{l.order}. {l.title} [dim]({l.type})[/dim]", "lesson")


async def run_quiz_session(store: LessonStore, lesson_id: str, questions: list[Question]) -> tuple[int, int]:
    if not questions:
        console.print("[yellow]This lesson has no questions.[/yellow]")
        return 0, 0
    score = 0
    console.print(f"\n[bold]Quiz[/bold]: {len(questions)} questions [dim](q to leave)[/dim]\n")
    for i, q in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold] {q.text}\n")
        for n, option in enumerate(q.options, 1):
            console.print(f"  [cyan]{n})[/cyan] {option}")
        choice = session_choice("\nYour answer", len(q.options))
        if is_correct(q, choice):
            console.print("[green]Correct![/green]\n")
            score += 1
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{q.options[q.correct_index]}[/green]\n")
    await record_quiz_result(store, lesson_id, score)
    total = len(questions)
    color = "green" if is_passing(score, total) else "yellow"
    console.print(f"[bold {color}]Score: {score}/{total} ({score_percentage(score, total)}%)[/bold {color}]\n")
    return score, total


def run_word_order_game(game: Game, rng: random.Random | None = None) -> bool:
    words = shuffled_words(game.data, rng)
    console.print(Panel("  ".join(f"[cyan]{i}[/cyan]:{w}" for i, w in enumerate(words, 1)), title=game.title))
    answer = session_prompt("Type the word numbers in order, separated by spaces")
    picks = [int(p) - 1 for p in answer.split() if p.isdigit() and 0 < int(p) <= len(words)]
    correct = check_word_order(game.data, [words[i] for i in picks])
    if correct:
        console.print("[green]Well done![/green]")
    else:
        console.print(f"[red]Not quite.[/red] [green]{game.data.sentence}[/green]")
    return correct


def show_memory_board(board: MemoryBoard, reveal: tuple[str, ...] = ()) -> None:
    table = Table(show_header=False)
    table.add_column("#", justify="right")
    table.add_column("Card")
    for i, card in enumerate(board.cards, 1):
        if card.id in board.matched:
            text = f"[green]{card.text}[/green]"
        elif card.id in reveal:
            text = f"[yellow]{card.text}[/yellow]"
        else:
            text = "[dim]?[/dim]"
        table.add_row(str(i), text)
    console.print(table)


def run_memory_game(game: Game, rng: random.Random | None = None) -> int:
    board = MemoryBoard.from_data(game.data, rng)
    console.print(f"\n[bold]{game.title}[/bold] [dim](match each term with its definition)[/dim]")
    while not board.is_finished:
        show_memory_board(board)
        first = board.cards[session_choice("First card", len(board.cards))]
        board.flip(first.id)
        second = board.cards[session_choice("Second card", len(board.cards))]
        matched = board.flip(second.id)
        if matched is None:
            board.flipped = []
            console.print("[yellow]Pick two different hidden cards.[/yellow]")
            continue
        show_memory_board(board, reveal=(first.id, second.id))
        console.print("[green]Match![/green]" if matched else "[red]No match.[/red]")
    console.print(f"[bold green]All pairs found in {board.attempts} tries.[/bold green]")
    return board.attempts


async def cmd_courses(store: LessonStore):
    courses = await store.list_courses()
    if not courses:
        console.print("[yellow]No courses yet. Use 'add-course' or 'import'.[/yellow]")
        return
    table = Table(title="Courses")
    table.add_column("Course", style="cyan")
    table.add_column("Lessons", justify="right")
    table.add_column("Description")
    for c in courses:
        table.add_row(f"[{c.color or 'white'}]■[/] {c.title}", str(c.lessons_count), c.description)
    console.print(table)


async def cmd_course(store: LessonStore):
    course = await pick_course(store)
    if course is None:
        return
    overview = await get_course_overview(store, course.id)
    ratio = overview["ratio"]
    color = get_progress_color(ratio)
    filled = int(ratio * 20)
    bar = f"[{color}]{'█' * filled}{'░' * (20 - filled)}[/{color}]"
    console.print(Panel(
        f"{course.description}\n\n{bar} {overview['completed']}/{len(overview['lessons'])} "
        f"[{color}]{get_progress_label(ratio)}[/{color}]",
        title=course.title, border_style="blue",
    ))
    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Lesson")
    table.add_column("Type")
    table.add_column("Questions", justify="right")
    table.add_column("Games", justify="right")
    table.add_column("Status")
    for row in overview["lessons"]:
        lesson, progress = row["lesson"], row["progress"]
        status = ""
        if progress is not None and progress.completed:
            status = "[green]Done[/green]"
            if progress.quiz_score is not None:
                status += f" ({progress.quiz_score}/{row['question_count']})"
        table.add_row(str(lesson.order), lesson.title, lesson.type,
                      str(row["question_count"]), str(row["game_count"]), status)
    console.print(table)


async def cmd_lesson(store: LessonStore):
    lesson = await pick_lesson(store)
    if lesson is None:
        return
    view = await get_lesson_view(store, lesson.id)
    console.print(f"\n[bold]{lesson.title}[/bold]\n")
    if lesson.type == "video":
        console.print(f"Watch: [link={lesson.video_url}]{lesson.video_url}[/link]")
    else:
        for message in lesson.content or []:
            if message.sender == "robot":
                console.print(Panel(message.text, title="Robot", title_align="left", border_style="cyan", width=70))
            else:
                console.print(Panel(message.text, title="You", title_align="right", border_style="green", width=70))
    if view["has_quiz"]:
        if Confirm.ask("Take the quiz now?", default=True):
            await run_quiz_session(store, lesson.id, await get_quiz_questions(store, lesson.id))
    elif Confirm.ask("Mark lesson as complete?", default=True):
        await mark_lesson_complete(store, lesson.id)
        console.print("[green]Lesson complete![/green]")
    if view["has_game"]:
        console.print("[dim]This lesson has games, try 'game'.[/dim]")


async def cmd_quiz(store: LessonStore):
    lesson = await pick_lesson(store)
    if lesson is None:
        return
    await run_quiz_session(store, lesson.id, await get_quiz_questions(store, lesson.id))


async def cmd_game(store: LessonStore):
    lesson = await pick_lesson(store)
    if lesson is None:
        return
    game = pick(await store.list_games(lesson.id), lambda g: f"{g.title} [dim]({g.type})[/dim]", "game")
    if game is None:
        return
    if game.type == "word-order":
        run_word_order_game(game)
    else:
        run_memory_game(game)


async def cmd_add_course(store: LessonStore):
    title = Prompt.ask("Title").strip()
    if not title:
        console.print("[red]A title is required.[/red]")
        return
    description = Prompt.ask("Description", default="").strip()
    color = Prompt.ask("Color", choices=COURSE_COLORS, default=COURSE_COLORS[0])
    icon = Prompt.ask("Icon", choices=COURSE_ICONS, default=COURSE_ICONS[0])
    course = await store.add_course(title=title, description=description, color=color, icon=icon)
    console.print(f"[green]Created course {course.title}.[/green]")


async def cmd_add_lesson(store: LessonStore):
    course = await pick_course(store)
    if course is None:
        return
    title = Prompt.ask("Lesson title").strip()
    if not title:
        console.print("[red]A title is required.[/red]")
        return
    lesson_type = Prompt.ask("Type", choices=["dialogue", "video"], default="dialogue")
    content, video_url = None, None
    if lesson_type == "dialogue":
        content = []
        sender = "robot"
        console.print("[dim]Enter dialogue lines; senders alternate. Blank line to finish.[/dim]")
        while True:
            text = Prompt.ask(f"[cyan]{sender}[/cyan]", default="").strip()
            if not text:
                break
            content.append(DialogueMessage(id=str(len(content) + 1), sender=sender, text=text))
            sender = "user" if sender == "robot" else "robot"
    else:
        video_url = Prompt.ask("Video URL").strip()
    order = await store.next_lesson_order(course.id)
    await store.add_lesson(course_id=course.id, title=title, type=lesson_type, order=order,
                           content=content, video_url=video_url)
    console.print(f"[green]Added lesson {order} to {course.title}.[/green]")


async def cmd_add_question(store: LessonStore):
    lesson = await pick_lesson(store)
    if lesson is None:
        return
    text = Prompt.ask("Question").strip()
    options = [Prompt.ask(f"Option {i}").strip() for i in range(1, 5)]
    if not text or not all(options):
        console.print("[red]The question and all four options are required.[/red]")
        return
    correct = IntPrompt.ask("Correct option", choices=["1", "2", "3", "4"])
    order = await store.next_question_order(lesson.id)
    await store.add_question(lesson_id=lesson.id, text=text, options=options,
                             correct_index=correct - 1, order=order)
    console.print(f"[green]Added question {order}.[/green]")


async def cmd_add_game(store: LessonStore):
    lesson = await pick_lesson(store)
    if lesson is None:
        return
    game_type = Prompt.ask("Game type", choices=["word-order", "memory"], default="word-order")
    title = Prompt.ask("Title").strip()
    if not title:
        console.print("[red]A title is required.[/red]")
        return
    if game_type == "word-order":
        sentence = Prompt.ask("Sentence").strip()
        if not sentence:
            console.print("[red]A sentence is required.[/red]")
            return
        data = WordOrderData(sentence=sentence, words=words_from_sentence(sentence))
    else:
        pairs = []
        console.print("[dim]Enter at least two term/definition pairs. Blank term to finish.[/dim]")
        while True:
            term = Prompt.ask("Term", default="").strip()
            if not term:
                if len(pairs) >= 2:
                    break
                console.print("[yellow]At least two pairs are needed.[/yellow]")
                continue
            definition = Prompt.ask("Definition").strip()
            pairs.append(MemoryPair(term=term, definition=definition))
        data = MemoryData(pairs=pairs)
    await store.add_game(lesson_id=lesson.id, type=game_type, title=title, data=data)
    console.print(f"[green]Added game {title}.[/green]")


async def cmd_delete_course(store: LessonStore):
    course = await pick_course(store)
    if course is None:
        return
    if Confirm.ask(f"Delete {course.title} and its {course.lessons_count} lessons?", default=False):
        await store.delete_course(course.id)
        console.print("[green]Course deleted.[/green]")


async def cmd_delete_lesson(store: LessonStore):
    lesson = await pick_lesson(store)
    if lesson is None:
        return
    if Confirm.ask(f"Delete {lesson.title} with its questions and games?", default=False):
        await store.delete_lesson(lesson.id)
        console.print("[green]Lesson deleted.[/green]")


async def cmd_import(store: LessonStore):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = await import_file(store, file_path)
    console.print(
        f"[green]Imported {result['filename']}: {result['courses']} courses, "
        f"{result['lessons']} lessons, {result['questions']} questions, {result['games']} games[/green]"
    )


async def cmd_reset(store: LessonStore):
    if not Confirm.ask("Erase all courses and progress?", default=False):
        return
    await store.clear_all()
    await seed_sample_data(store)
    console.print("[green]Sample courses reloaded.[/green]")


COMMANDS = {
    "courses": cmd_courses,
    "course": cmd_course,
    "lesson": cmd_lesson,
    "quiz": cmd_quiz,
    "game": cmd_game,
    "add-course": cmd_add_course,
    "add-lesson": cmd_add_lesson,
    "add-question": cmd_add_question,
    "add-game": cmd_add_game,
    "delete-course": cmd_delete_course,
    "delete-lesson": cmd_delete_lesson,
    "import": cmd_import,
    "reset": cmd_reset,
}


async def run(db_path: str):
    await init_db(db_path)
    store = LessonStore(db_path)
    if await ensure_seed(store):
        console.print("[dim]Loaded sample courses.[/dim]")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="courses").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]See you next lesson![/dim]")
            break
        handler = COMMANDS.get(choice)
        if handler is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            await handler(store)
        except SessionExitRequested:
            console.print("[dim]Back to the menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="course-tutor")
    parser.add_argument("--db", default=DEFAULT_DB_PATH, help="path to the SQLite store")
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=os.environ.get("COURSE_TUTOR_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run(args.db))


if __name__ == "__main__":
    main()
