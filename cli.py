import typer
from rich.console import Console
from rich.table import Table
from typing import Optional
import time

from pydantic import ValidationError as SchemaValidationError

from backend.config import settings
from backend.database import SessionLocal, init_db
from backend.crud import create_learner, get_learner, get_learner_by_name, list_learners, load_progress
from backend.errors import TimesTablesError
from backend.logging_config import setup_logging
from backend.practice import PracticeSession, get_next_problem, reset_learner, submit_answer
from backend.problem import MAX_FACTOR, MIN_FACTOR, Problem, is_unlocked
from backend.schemas import AnswerRequest, LearnerCreate, LearnerResponse
from backend.spaced_rep import SpacedRepetition

app = typer.Typer(help="Times Tables Trainer - spaced repetition practice for multiplication facts")
console = Console()

@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging")):
    """Configure logging before any command runs"""
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_file)

def _fail(message: str):
    console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(code=1)

QUIT_REPLIES = ("q", "quit", "exit")

def _ask_correction(problem: Problem) -> bool:
    """Make the learner type the right answer once. Returns False if they quit instead."""
    while True:
        reply = typer.prompt(f"Type the answer: {problem.answer}").strip()
        if reply.lower() in QUIT_REPLIES:
            return False
        if reply == str(problem.answer):
            return True

def _print_stats(aggregate):
    console.print(
        f"  Mastered: {aggregate.mastered_count}/{aggregate.unlocked_problems}"
        f"  |  Due: {aggregate.due_count}"
        f"  |  Answered: {aggregate.total_answered}"
    )

@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")

@app.command("create-learner")
def create_learner_command(name: str = typer.Argument(..., help="Learner's name")):
    """Create a new learner (starts with the 1 times table)"""
    db = SessionLocal()
    try:
        if get_learner_by_name(db, name):
            _fail(f"A learner called '{name}' already exists")
        learner = create_learner(db, LearnerCreate(name=name))
        console.print(f"[green]✓[/green] Learner created! ID: {learner.id}")
    except SchemaValidationError as e:
        _fail(f"Invalid learner: {e.errors()[0]['msg']}")
    finally:
        db.close()

@app.command("list-learners")
def list_learners_command():
    """List all learners"""
    db = SessionLocal()
    try:
        learners = list_learners(db)
        if not learners:
            console.print("[yellow]No learners yet. Create one with create-learner.[/yellow]")
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("ID", style="cyan", justify="right")
        table.add_column("Name", style="green")
        table.add_column("Tables open", style="yellow", justify="right")

        for learner in learners:
            row = LearnerResponse.model_validate(learner)
            table.add_row(str(row.id), row.name, str(row.unlocked_count))

        console.print(table)
    finally:
        db.close()

@app.command("next-problem")
def next_problem_command(learner_id: int):
    """Show the next problem without answering it"""
    db = SessionLocal()
    try:
        result = get_next_problem(db, learner_id)
        if result.problem is None:
            console.print("[yellow]No problem available[/yellow]")
        else:
            console.print(f"[bold]{result.problem.to_problem().display()}[/bold]")
        _print_stats(result.aggregate)
    except TimesTablesError as e:
        _fail(str(e))
    finally:
        db.close()

@app.command()
def answer(
    learner_id: int,
    a: int,
    b: int,
    user_answer: int,
    elapsed: Optional[float] = typer.Option(None, help="Seconds taken to answer (default from settings)")
):
    """Submit a single answer non-interactively"""
    db = SessionLocal()
    try:
        request = AnswerRequest(
            a=a,
            b=b,
            user_answer=user_answer,
            elapsed_seconds=settings.default_elapsed_seconds if elapsed is None else elapsed
        )
        # Backfill progress rows so the first answer has something to update
        get_next_problem(db, learner_id)
        result = submit_answer(db, learner_id, request)

        if result.correct:
            console.print(f"[green]✓ Correct![/green] {a} × {b} = {result.correct_answer}")
        else:
            console.print(f"[red]✗ Not quite.[/red] {a} × {b} = {result.correct_answer}")

        state = result.updated_fact_state
        console.print(f"  Ease: {state.ease_factor:.2f}  |  Next review in {state.interval_days:g} days")
        if result.unlocked_new_table is not None:
            console.print(f"[bold green]🎉 Unlocked the {result.unlocked_new_table} times table![/bold green]")
        if result.next_problem is not None:
            console.print(f"  Next: {result.next_problem.to_problem().display()}")
        _print_stats(result.aggregate)
    except SchemaValidationError as e:
        _fail(f"Invalid answer: {e.errors()[0]['msg']}")
    except TimesTablesError as e:
        _fail(str(e))
    finally:
        db.close()

@app.command()
def practice(
    learner_id: int,
    rounds: int = typer.Option(10, help="Number of problems to ask (0 for no limit)")
):
    """Interactive practice session. Type q to stop."""
    db = SessionLocal()
    try:
        learner = get_learner(db, learner_id)
        if not learner:
            _fail(f"Learner ID {learner_id} not found")

        console.print(f"\n[bold]Practice time, {learner.name}![/bold] (type q to stop)\n")

        session = PracticeSession()
        next_up = get_next_problem(db, learner_id)
        problem = next_up.problem.to_problem() if next_up.problem else None

        while problem is not None and (rounds <= 0 or session.answered < rounds):
            started = time.monotonic()
            reply = typer.prompt(problem.display())
            elapsed = time.monotonic() - started

            if reply.strip().lower() in QUIT_REPLIES:
                break
            try:
                user_answer = int(reply.strip())
            except ValueError:
                console.print("[yellow]Please type a whole number.[/yellow]")
                continue

            result = submit_answer(db, learner_id, AnswerRequest(
                a=problem.a,
                b=problem.b,
                user_answer=user_answer,
                elapsed_seconds=elapsed
            ))
            session = session.record(result.correct)

            if result.correct:
                console.print(f"[green]✓ Correct![/green] ({elapsed:.1f}s)  Streak: {session.streak}")
            else:
                console.print(f"[red]✗ {problem.a} × {problem.b} = {result.correct_answer}[/red]")
                # The retyped answer is not graded again
                if not _ask_correction(problem):
                    break
            if result.unlocked_new_table is not None:
                console.print(f"[bold green]🎉 Unlocked the {result.unlocked_new_table} times table![/bold green]")

            if result.next_problem is not None:
                problem = result.next_problem.to_problem()
            else:
                # Only one problem unlocked: ask it again
                repeat = get_next_problem(db, learner_id, last_problem=problem, repeat_last=True)
                problem = repeat.problem.to_problem() if repeat.problem else None

        console.print(
            f"\n[bold]Session over:[/bold] {session.correct}/{session.answered} correct"
            f" ({session.accuracy:.0%}), best streak {session.best_streak}"
        )
    except TimesTablesError as e:
        _fail(str(e))
    finally:
        db.close()

@app.command()
def progress(learner_id: int):
    """Show progress and a 12 × 12 mastery grid"""
    db = SessionLocal()
    try:
        learner = get_learner(db, learner_id)
        if not learner:
            _fail(f"Learner ID {learner_id} not found")

        result = get_next_problem(db, learner_id)
        unlocked_count, states = load_progress(db, learner_id)
        aggregate = result.aggregate

        console.print(f"\n[bold]Progress - {learner.name}[/bold]\n")
        console.print(f"[cyan]Statistics:[/cyan]")
        console.print(f"  Tables unlocked: {', '.join(str(t) for t in aggregate.unlocked_tables)}")
        if aggregate.next_table is not None:
            console.print(f"  Next table: {aggregate.next_table}")
        else:
            console.print("  Every table is unlocked!")
        _print_stats(aggregate)
        if aggregate.total_answered:
            console.print(f"  Accuracy: {aggregate.total_correct / aggregate.total_answered:.0%}")

        by_problem = {s.problem: s for s in states}
        table = Table(show_header=True, header_style="bold magenta", title="[green]mastered[/green] / [yellow]unlocked[/yellow] / [dim]locked[/dim]")
        table.add_column("×", style="bold cyan", justify="right")
        for b in range(MIN_FACTOR, MAX_FACTOR + 1):
            table.add_column(str(b), justify="right")

        for a in range(MIN_FACTOR, MAX_FACTOR + 1):
            cells = []
            for b in range(MIN_FACTOR, MAX_FACTOR + 1):
                problem = Problem(a, b)
                state = by_problem.get(problem)
                if not is_unlocked(problem, unlocked_count):
                    cells.append(f"[dim]{problem.answer}[/dim]")
                elif state is not None and SpacedRepetition.is_mastered(state):
                    cells.append(f"[green]{problem.answer}[/green]")
                else:
                    cells.append(f"[yellow]{problem.answer}[/yellow]")
            table.add_row(str(a), *cells)

        console.print(table)
    except TimesTablesError as e:
        _fail(str(e))
    finally:
        db.close()

@app.command()
def reset(
    learner_id: int,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt")
):
    """Delete all progress for a learner (WARNING: irreversible!)"""
    if not yes:
        confirm = typer.confirm("⚠️  This will DELETE ALL PROGRESS for this learner. Are you sure?")
        if not confirm:
            console.print("[yellow]Cancelled.[/yellow]")
            return

    db = SessionLocal()
    try:
        deleted = reset_learner(db, learner_id)
        console.print(f"[green]✓[/green] Progress reset! Removed {deleted} facts, back to the 1 times table.")
    except TimesTablesError as e:
        _fail(str(e))
    finally:
        db.close()

if __name__ == "__main__":
    app()
