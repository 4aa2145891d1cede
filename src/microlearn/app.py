"""Interactive CLI application."""
import os
import sys

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from microlearn.dashboard import (
    get_accuracy_color, get_achievements, get_active_days, get_learner_stats, get_level_color,
)
from microlearn.db import DEFAULT_DB_PATH, init_db
from microlearn.learners import create_learner, get_learner, get_learner_by_username
from microlearn.models import Concept, Example, LearningCard, Question
from microlearn.progression import advance_to_next_card, get_current_card
from microlearn.review import exit_review_mode, is_in_review_mode, start_review_mode
from microlearn.seed import is_seeded, seed_all
from microlearn.study import get_daily_plan, submit_answer
from microlearn.topics import blocks_progress, get_topic_status, get_topics

console = Console()

EXIT_WORDS = ("q", "menu")
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class SessionExitRequested(Exception):
    """The learner asked to leave the current session and return to the menu."""


def configure_logging(level: str = None) -> None:
    level = level or os.environ.get("MICROLEARN_LOG_LEVEL", "WARNING")
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    answer = session_prompt(prompt, choices=list(choices) + list(EXIT_WORDS), show_choices=False)
    return int(answer)


def show_welcome(username: str):
    console.print(Panel(
        f"[bold]Welcome back, {username}![/bold]\n[dim]Bite-sized lessons, every day[/dim]",
        title="microlearn", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("learn", "Continue learning"),
        ("review", "Review questions that are due"),
        ("topics", "Topics and unlocks"),
        ("plan", "Today's plan and missions"),
        ("profile", "Stats and achievements"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<10}[/cyan] {desc}")


def render_card(card: LearningCard) -> None:
    title = f"{card.topic_title} · Lesson {card.lesson_index} · {card.kind.title()}"
    content = card.content
    if isinstance(content, Concept):
        body = content.text
        if content.takeaway:
            body += f"\n\n[bold]Key takeaway:[/bold] {content.takeaway}"
        console.print(Panel(body, title=title, border_style="blue"))
    elif isinstance(content, Example):
        console.print(Panel(content.narrative, title=title, border_style="green"))
    elif isinstance(content, Question):
        body = f"[dim]{content.scenario}[/dim]\n\n" if content.scenario else ""
        body += f"[bold]{content.prompt}[/bold]\n"
        for i, option in enumerate(content.options, 1):
            body += f"\n  [cyan]{i})[/cyan] {option}"
        console.print(Panel(body, title=title, border_style="cyan"))
    else:
        raise TypeError(f"Unsupported card content: {type(content).__name__}")


def run_card(db_path: str, learner_id: str, card: LearningCard) -> None:
    """Show one card, collect an answer for questions, then advance."""
    render_card(card)
    if isinstance(card.content, Question):
        choices = [str(i) for i in range(1, len(card.content.options) + 1)]
        choice = session_int_prompt("Your answer", choices=choices)
        result = submit_answer(db_path, learner_id, card.id, choice - 1)
        if result["is_correct"]:
            console.print(f"[green]Correct![/green] +{result['credits_earned']} credits")
        else:
            correct = card.content.options[result["correct_index"]]
            console.print(f"[red]Incorrect.[/red] Answer: [green]{correct}[/green]")
        if result["explanation"]:
            console.print(f"[dim]{result['explanation']}[/dim]")
        if result["mission_rewards"]:
            console.print(f"[yellow]Mission complete! +{result['mission_rewards']} credits[/yellow]")
    else:
        session_prompt("[dim]Press Enter to continue[/dim]", default="")
    advance_to_next_card(db_path, learner_id, card_id=card.id)
    console.print()


def cmd_learn(db_path: str, learner_id: str):
    while True:
        card = get_current_card(db_path, learner_id)
        if card is None:
            console.print("[green]You've finished every card! Use 'review' to keep practising.[/green]")
            return
        if not is_in_review_mode(db_path, learner_id):
            status = get_topic_status(db_path, learner_id, card.topic_id)
            if blocks_progress(status):
                opens = status.unlocks_at.strftime("%b %d %H:%M")
                console.print(f"[yellow]{card.topic_title} is still locked. It opens {opens}.[/yellow]")
                return
        run_card(db_path, learner_id, card)


def cmd_review(db_path: str, learner_id: str):
    if not is_in_review_mode(db_path, learner_id):
        count = start_review_mode(db_path, learner_id)
        if not count:
            console.print("[green]Nothing to review right now. Nice work![/green]")
            return
        console.print(f"\n[bold]Review:[/bold] {count} questions\n")
    try:
        while is_in_review_mode(db_path, learner_id):
            run_card(db_path, learner_id, get_current_card(db_path, learner_id))
    except SessionExitRequested:
        exit_review_mode(db_path, learner_id)
        raise
    console.print("[green]Review complete![/green]")


def cmd_topics(db_path: str, learner_id: str):
    table = Table(title="Topics")
    table.add_column("#", justify="right")
    table.add_column("Topic", style="cyan")
    table.add_column("Lessons", justify="right")
    table.add_column("Status")
    for topic in get_topics(db_path, learner_id):
        if not topic.is_locked:
            status = "[green]Open[/green]"
        elif topic.unlocks_at:
            status = f"[yellow]Unlocks {topic.unlocks_at:%a %d %b %H:%M}[/yellow]"
        else:
            status = "[red]Finish the previous topic[/red]"
        table.add_row(
            str(topic.order), topic.title,
            f"{topic.completed_lessons}/{topic.lesson_count}", status,
        )
    console.print(table)


def cmd_plan(db_path: str, learner_id: str):
    plan = get_daily_plan(db_path, learner_id)
    if plan["all_lessons_complete"]:
        lesson_msg = "[green]All lessons complete[/green]"
    elif plan["has_new_lesson"]:
        lesson_msg = "[cyan]A new lesson is ready[/cyan]"
    else:
        lesson_msg = "[yellow]Next lesson is locked[/yellow]"
    today = plan["today"]
    console.print(Panel(
        f"{lesson_msg}\nReviews due: [bold]{plan['review_count']}[/bold]\n"
        f"Today: {today['cards_completed']} cards, {today['correct_answers']} correct, "
        f"{today['credits_earned']} credits",
        title="Today's Plan",
    ))
    table = Table(title="Daily Missions")
    table.add_column("Mission")
    table.add_column("Progress", justify="right")
    table.add_column("Reward", justify="right")
    for mission in plan["missions"]:
        progress = f"{mission.progress}/{mission.target}"
        if mission.completed:
            progress = f"[green]{progress} ✓[/green]"
        table.add_row(mission.title, progress, f"{mission.reward}")
    console.print(table)


def cmd_profile(db_path: str, learner_id: str):
    stats = get_learner_stats(db_path, learner_id)
    level_color = get_level_color(stats["level"])
    acc_color = get_accuracy_color(stats["accuracy"])
    console.print(Panel(
        f"Level: [{level_color}]{stats['level'].title()}[/{level_color}]  |  "
        f"Credits: [bold]{stats['credits']}[/bold]  |  Streak: [bold]{stats['streak']}[/bold] days\n"
        f"Accuracy: [{acc_color}]{stats['accuracy']}%[/{acc_color}] "
        f"({stats['total_correct']}/{stats['total_answered']})  |  "
        f"Lessons: {stats['completed_lessons']}/{stats['total_lessons']}",
        title=stats["username"], border_style="blue",
    ))
    days = get_active_days(stats["streak"]) if stats["streak"] else []
    console.print("  " + " ".join(
        f"[green]{name}[/green]" if i in days else f"[dim]{name}[/dim]"
        for i, name in enumerate(WEEKDAYS)
    ))
    table = Table(title="Achievements")
    table.add_column("")
    table.add_column("Achievement")
    table.add_column("Description", style="dim")
    for achievement in get_achievements(db_path, learner_id):
        mark = "[green]★[/green]" if achievement["earned"] else "[dim]☆[/dim]"
        table.add_row(mark, achievement["title"], achievement["description"])
    console.print(table)


def choose_learner(db_path: str) -> str:
    username = Prompt.ask("Username", default="Learner").strip()
    learner = get_learner_by_username(db_path, username)
    if learner is None:
        learner = create_learner(db_path, username)
        console.print(f"[green]Welcome aboard, {username}![/green]")
    return learner.id


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)

    learner_id = choose_learner(db_path)
    show_welcome(get_learner(db_path, learner_id).username)

    commands = {
        "learn": cmd_learn,
        "review": cmd_review,
        "topics": cmd_topics,
        "plan": cmd_plan,
        "profile": cmd_profile,
    }
    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="learn").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]See you tomorrow![/dim]")
            break
        command = commands.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path, learner_id)
        except SessionExitRequested:
            console.print("[dim]Back to the menu.[/dim]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command failed")
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
