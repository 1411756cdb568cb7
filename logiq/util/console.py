"""Rich console helpers for the terminal quiz runner."""

from __future__ import annotations

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..data.questions import CATEGORY_LABELS
from ..models.schemas import PracticeReport, Question, ScoreReport

console = Console()


def print_banner() -> None:
    console.print(
        Panel(
            "[bold cyan]LogIQ: Cognitive Assessment[/bold cyan]\n"
            "[dim]30 questions  •  5 domains  •  25 minutes[/dim]",
            border_style="bright_blue",
        )
    )


def format_clock(ms: int) -> str:
    seconds = max(0, ms) // 1000
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def print_status(
    index: int, total: int, remaining_ms: int, answered: int, flagged: bool
) -> None:
    flag = "  [magenta]⚑ flagged[/magenta]" if flagged else ""
    colour = "red" if remaining_ms < 60_000 else "green"
    console.print(
        f"\n[bold]Question {index + 1}/{total}[/bold]  "
        f"[{colour}]⏱ {format_clock(remaining_ms)}[/{colour}]  "
        f"[dim]{answered} answered[/dim]{flag}"
    )


def print_question(question: Question, selected: Optional[int] = None) -> None:
    label = CATEGORY_LABELS.get(question.category.value, question.category.value)
    console.print(f"[dim]{label}[/dim]")
    console.print(f"[bold yellow]{question.prompt}[/bold yellow]")

    if question.grid:
        grid = Table(show_header=False, show_lines=True, box=None, padding=(0, 2))
        for _ in question.grid[0]:
            grid.add_column(justify="center")
        for row in question.grid:
            grid.add_row(*row)
        console.print(grid)
    elif question.sequence:
        console.print("   " + "  ".join(question.sequence))

    for i, option in enumerate(question.options, 1):
        marker = "[green]●[/green]" if selected == i - 1 else " "
        console.print(f" {marker} {i}) {option}")


def print_score_report(report: ScoreReport, permalink: Optional[str] = None) -> None:
    console.print(
        Panel(
            f"[bold cyan]IQ estimate: {report.iq_score}[/bold cyan]\n"
            f"{report.classification} ({report.classification_descriptor})  •  "
            f"{report.percentile}th percentile\n"
            f"[dim]{report.raw_score}/{report.total_questions} correct  •  "
            f"weighted {report.weighted_score}/{report.max_weighted_score}[/dim]",
            title="Results",
            border_style="green",
        )
    )

    table = Table(title="By category", show_lines=False)
    table.add_column("Category")
    table.add_column("Correct", justify="right")
    table.add_column("%", justify="right")
    for cat in report.categories:
        table.add_row(cat.label, f"{cat.correct}/{cat.total}", str(cat.percentage))
    console.print(table)

    tiers = report.difficulty_breakdown
    console.print(
        f"Easy {tiers.easy.correct}/{tiers.easy.total}  •  "
        f"Medium {tiers.medium.correct}/{tiers.medium.total}  •  "
        f"Hard {tiers.hard.correct}/{tiers.hard.total}"
    )
    console.print(
        f"[dim]Total {format_clock(report.total_time_ms)}  •  "
        f"avg {report.avg_time_per_question_ms / 1000:.1f}s  •  "
        f"fastest {report.fastest_question_ms / 1000:.1f}s  •  "
        f"slowest {report.slowest_question_ms / 1000:.1f}s[/dim]"
    )
    if permalink:
        console.print(f"\n🔗 Share: [link={permalink}]{permalink}[/link]")


def print_practice_report(report: PracticeReport) -> None:
    table = Table(title="Practice results", show_lines=True)
    table.add_column("#", style="bold")
    table.add_column("Question")
    table.add_column("Your answer")
    table.add_column("Correct?", justify="center")
    for i, result in enumerate(report.results, 1):
        q = result.question
        chosen = q.options[result.user_answer] if result.user_answer >= 0 else "—"
        table.add_row(str(i), q.prompt, chosen, "✅" if result.is_correct else "❌")
    console.print(table)
    console.print(
        f"[bold]{report.correct_count}/{report.total_questions} correct[/bold]"
    )


def print_help(commands: List[str]) -> None:
    console.print("[dim]" + "  •  ".join(commands) + "[/dim]")
