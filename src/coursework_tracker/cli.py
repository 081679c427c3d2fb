import json
import logging
from pathlib import Path
from typing import Optional, List

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from coursework_tracker.commit_source import GitHubCommitSource, LocalGitCommitSource, parse_repo_url
from coursework_tracker.config_manager import ConfigManager
from coursework_tracker.core import AnalyticsEngine
from coursework_tracker.metrics import resolve_now
from coursework_tracker.models import Milestone
from coursework_tracker.store import LocalStore
from coursework_tracker.sync import CommitSyncer

app = typer.Typer(
    help="Coursework Tracker: commit analytics for student software projects",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]}
)

console = Console()
error_console = Console(stderr=True)

student_app = typer.Typer(help="Manage students")
app.add_typer(student_app, name="student")

repo_app = typer.Typer(help="Manage repositories")
app.add_typer(repo_app, name="repo")

milestone_app = typer.Typer(help="Manage course milestones")
app.add_typer(milestone_app, name="milestones")

VERSION = "1.0.0"

GRADE_COLORS = {"A": "green", "B": "green", "C": "yellow", "D": "red", "F": "red", "N/A": "dim"}


def print_version(value: bool):
    if value:
        console.print(f"Coursework Tracker v{VERSION}")
        raise typer.Exit()


@app.callback()
def main(
        version: bool = typer.Option(False, "--version", "-v", help="Show version and exit", callback=print_version,
                                     is_eager=True),
        verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, rich_tracebacks=True)],
    )


def _load():
    config = ConfigManager()
    try:
        settings = config.load_settings()
    except ValidationError as e:
        error_console.print(f"[red]Invalid settings in {config.settings_path}: {e}[/red]")
        raise typer.Exit(1)
    store = LocalStore(config.store_path)
    engine = AnalyticsEngine(store, settings, config.milestones)
    return config, store, engine


def _exit_on_error(result):
    if isinstance(result, dict) and "error" in result:
        error_console.print(f"[red]{result['error']}[/red]")
        raise typer.Exit(1)


def _grade(grade: str) -> str:
    return f"[{GRADE_COLORS.get(grade, 'white')}]{grade}[/]"


@app.command("setup", help="Store a GitHub token for syncing")
def setup(username: str = typer.Option(..., prompt=True, help="Your GitHub username")):
    token = typer.prompt("Enter your GitHub token", hide_input=True)

    config = ConfigManager()
    config.set_github_token(token, username)

    check = GitHubCommitSource(token).check_token_validity()
    if check.get("valid"):
        console.print(f"[green]GitHub token stored and verified for user {check.get('username')}[/green]")
    else:
        console.print(f"[yellow]GitHub token stored but verification failed: {check.get('error')}[/yellow]")


@student_app.command("add", help="Register a student")
def add_student(
        name: str = typer.Argument(..., help="Student name"),
        email: str = typer.Option("", help="Student email"),
):
    _, store, _ = _load()
    student = store.add_student(name, email)
    store.save()
    console.print(f"[green]Added student {student.name} (id {student.id})[/green]")


@student_app.command("remove", help="Delete a student with their repositories and commits")
def remove_student(student_id: int = typer.Argument(..., help="Student id")):
    _, store, _ = _load()
    if not store.delete_student(student_id):
        error_console.print(f"[red]Student {student_id} not found[/red]")
        raise typer.Exit(1)
    store.save()
    console.print(f"[green]Removed student {student_id}[/green]")


@student_app.command("list", help="List students and their repositories")
def list_students():
    _, store, _ = _load()

    table = Table(title="Students")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Repositories")
    table.add_column("Commits", justify="right")

    for student in store.students:
        repos = store.repositories_for_student(student.id)
        table.add_row(
            str(student.id),
            student.name,
            student.email,
            ", ".join(f"{r.full_name} (#{r.id})" for r in repos) or "-",
            str(len(store.commits_for_student(student.id))),
        )
    console.print(table)

    totals = store.summary(resolve_now(None))
    console.print(f"{totals['students']} students, {totals['repositories']} repositories, "
                  f"{totals['commits']} commits ({totals['active']} in the last 7 days)")


@repo_app.command("add", help="Attach a GitHub repository to a student")
def add_repository(
        student_id: int = typer.Argument(..., help="Owning student id"),
        repo_url: str = typer.Argument(..., help="GitHub repository URL"),
        tech: Optional[List[str]] = typer.Option(None, help="Technology used (repeatable)"),
        group: bool = typer.Option(False, help="Repository is a group project"),
        contributor: Optional[List[str]] = typer.Option(None, help="Expected contributor (repeatable)"),
):
    _, store, _ = _load()
    if not store.get_student(student_id):
        error_console.print(f"[red]Student {student_id} not found[/red]")
        raise typer.Exit(1)

    parts = parse_repo_url(repo_url)
    if not parts:
        error_console.print(f"[red]Invalid GitHub URL format: {repo_url}[/red]")
        raise typer.Exit(1)

    repo = store.add_repository(
        student_id, parts["owner"], parts["repo_name"],
        repo_url=repo_url, tech_stack=tech or [], is_group=group, contributors=contributor or [],
    )
    store.save()
    console.print(f"[green]Added repository {repo.full_name} (id {repo.id})[/green]")


@app.command("sync", help="Fetch new commits for every repository")
def sync(
        username: Optional[str] = typer.Option(None, help="GitHub username whose stored token to use"),
        local_root: Optional[Path] = typer.Option(None, help="Read from local clones under this directory"),
        stats: bool = typer.Option(False, "--stats", help="Fetch line stats per commit (one extra GitHub request each)"),
):
    config, store, engine = _load()

    if local_root:
        source = LocalGitCommitSource(str(local_root))
    else:
        token = config.get_github_token(username) if username else None
        if username and not token:
            error_console.print("[red]GitHub token not found. Please run setup first.[/red]")
            raise typer.Exit(1)
        source = GitHubCommitSource(token, fetch_stats=stats or engine.settings.sync_fetch_stats)

    summary = CommitSyncer(store, source, engine.settings).sync_all()
    store.save()

    for result in summary["results"]:
        if result["status"] == "error":
            console.print(f"[red]✗ {result['repository']}: {result['error']}[/red]")
        else:
            console.print(f"[green]✓ {result['repository']}: {result['new_commits']} new "
                          f"of {result['fetched']} fetched[/green]")
    console.print(f"Synced {summary['synced']}/{summary['total']} repositories, "
                  f"{summary['new_commits']} new commits")


@app.command("class-report", help="Class-wide analytics summary")
def class_report():
    _, _, engine = _load()
    report = engine.class_analytics()
    summary = report["summary"]

    console.print(Panel(
        f"Students: {summary['total_students']}   Repositories: {summary['total_repositories']}   "
        f"Commits: {report['total_commits']}\n"
        f"Avg consistency: {summary['avg_consistency_score']}   Avg quality: {summary['avg_quality_score']}\n"
        f"Cramming alerts: {summary['cramming_alerts']}   Slacker warnings: {summary['slacker_warnings']}",
        title="Class Analytics",
    ))

    grades = "  ".join(f"{_grade(g)}: {n}" for g, n in report["grade_distribution"].items())
    console.print(f"Grade distribution: {grades}")

    table = Table(title="Repositories")
    for column in ("Student", "Repository", "Commits", "Consistency", "Grade", "Flags"):
        table.add_column(column)
    for row in report["student_analytics"]:
        flags = []
        if row["is_cramming"]:
            flags.append("cramming")
        if row["has_slacker_warning"]:
            flags.append("imbalanced")
        table.add_row(row["student_name"], row["repo_name"], str(row["total_commits"]),
                      str(row["consistency_score"]), _grade(row["quality_grade"]), ", ".join(flags))
    console.print(table)

    at_risk = engine.at_risk_students()
    if at_risk:
        console.print("[yellow]At-risk students:[/yellow] " + ", ".join(
            f"{item['student']['name']} ({item['recent_commits']} recent)" for item in at_risk))


@app.command("leaderboard", help="Rank students by overall score")
def leaderboard(period: str = typer.Option("all", help="all, weekly or monthly")):
    _, _, engine = _load()
    try:
        board = engine.leaderboard(period)
    except ValueError as e:
        error_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Leaderboard ({board['period']})")
    for column in ("Rank", "Name", "Score", "Commits", "Grade", "Active Days", "Streak"):
        table.add_column(column)
    for row in board["rankings"]:
        table.add_row(str(row["rank"]), row["name"], str(row["overall_score"]), str(row["total_commits"]),
                      _grade(row["quality_grade"]), str(row["active_days"]), str(row["current_streak"]))
    console.print(table)
    console.print(f"Average score: {board['stats']['avg_score']}")


@app.command("compare", help="Compare two students side by side")
def compare(student_a: int, student_b: int):
    _, _, engine = _load()
    result = engine.compare_students(student_a, student_b)
    _exit_on_error(result)

    first, second = result["student1"], result["student2"]
    table = Table(title="Comparison")
    table.add_column("Metric")
    table.add_column(first["name"])
    table.add_column(second["name"])
    for key in first["metrics"]:
        table.add_row(key.replace("_", " ").title(), str(first["metrics"][key]), str(second["metrics"][key]))
    table.add_row("Work Pattern", first["patterns"]["work_pattern"], second["patterns"]["work_pattern"])
    table.add_row("Tech Stack", ", ".join(first["tech_stack"]), ", ".join(second["tech_stack"]))
    table.add_row("Strengths", ", ".join(first["strengths"]), ", ".join(second["strengths"]))
    console.print(table)


@app.command("timeline", help="Weekly progress timeline for a student")
def timeline(student_id: int):
    _, _, engine = _load()
    result = engine.progress_timeline(student_id)
    _exit_on_error(result)

    table = Table(title=f"Progress: {result['student']['name']}")
    for column in ("Week", "Commits", "Cumulative", "Grade"):
        table.add_column(column)
    for week in result["timeline"]:
        table.add_row(week["week_start"], str(week["commits"]), str(week["cumulative_commits"]),
                      _grade(week["quality_grade"]))
    console.print(table)

    for marker in result["milestones"]:
        console.print(f"🏁 {marker['label']} on {marker['achieved_at'][:10]}")
    for milestone in result["milestone_progress"]:
        console.print(f"{milestone['name']}: {milestone['commits_achieved']}/{milestone['required_commits']} "
                      f"({milestone['status']})")


@app.command("badges", help="Earned and locked badges for a student")
def badges(student_id: int):
    _, _, engine = _load()
    result = engine.student_badges(student_id)
    _exit_on_error(result)

    console.print(f"[bold]{result['student']['name']}[/bold]: {result['total_earned']}/{result['total_possible']} badges")
    for badge in result["earned"]:
        console.print(f"  {badge['icon']} [green]{badge['name']}[/green] - {badge['description']}")
    for badge in result["locked"]:
        console.print(f"  🔒 [dim]{badge['name']} - {badge['requirement']}[/dim]")


@app.command("summary", help="Narrative summary of a student's work")
def summary(student_id: int, repo: Optional[int] = typer.Option(None, help="Limit to one repository id")):
    _, _, engine = _load()
    result = engine.student_summary(student_id, repo)
    _exit_on_error(result)

    console.print(Panel(result["summary"], title="Summary"))
    for pattern in result["patterns"]:
        console.print(f"• {pattern}")
    console.print("[bold]Recommendations[/bold]")
    for recommendation in result["recommendations"]:
        console.print(f"→ {recommendation}")


@app.command("contributors", help="Contribution balance for a repository")
def contributors(repo_id: int):
    _, store, engine = _load()
    if not store.get_repository(repo_id):
        error_console.print(f"[red]Repository {repo_id} not found[/red]")
        raise typer.Exit(1)

    balance = engine.contribution_balance(repo_id)
    if balance is None:
        console.print("[yellow]No commits recorded for this repository[/yellow]")
        return

    table = Table(title=f"Contributors (gini {balance['gini_coefficient']}, {balance['balance_status']})")
    table.add_column("Author")
    table.add_column("Commits", justify="right")
    table.add_column("Share", justify="right")
    for row in balance["contributors"]:
        table.add_row(row["author"], str(row["commit_count"]), f"{row['percentage']}%")
    console.print(table)
    if balance["has_slacker_warning"]:
        dominant = balance["dominant_contributor"]
        console.print(f"[yellow]⚠ {dominant['name']} wrote {dominant['percentage']}% of the commits[/yellow]")


@app.command("export", help="Export per-student metrics")
def export(
        format: str = typer.Option("json", "--format", "-f", help="json or csv"),
        output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
):
    _, _, engine = _load()
    try:
        payload = engine.export_analytics(format)
    except ValueError as e:
        error_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    text = payload["csv_string"] if format == "csv" else json.dumps(payload, indent=2)
    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Export written to {output}[/green]")
    else:
        console.print(text, markup=False, highlight=False)


@app.command("report", help="Write a markdown progress report for a student")
def report(student_id: int, output: Path = typer.Option(..., "--output", "-o", help="Markdown file path")):
    _, _, engine = _load()
    markdown = engine.student_report(student_id)
    if markdown is None:
        error_console.print("[red]Student not found[/red]")
        raise typer.Exit(1)
    output.write_text(markdown, encoding="utf-8")
    console.print(f"[green]Report written to {output}[/green]")


@milestone_app.command("list", help="Show configured milestones")
def list_milestones():
    _, _, engine = _load()
    table = Table(title="Milestones")
    for column in ("ID", "Name", "Date", "Required Commits"):
        table.add_column(column)
    for milestone in engine.milestones():
        table.add_row(str(milestone.id), milestone.name, milestone.date.date().isoformat(),
                      str(milestone.required_commits))
    console.print(table)


@milestone_app.command("set", help="Replace milestones from a JSON file")
def set_milestones(file_path: Path = typer.Argument(..., help="JSON list of milestones")):
    _, _, engine = _load()
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
        milestones = [Milestone(**item) for item in data]
    except (OSError, json.JSONDecodeError, ValidationError, TypeError) as e:
        error_console.print(f"[red]Could not read milestones: {e}[/red]")
        raise typer.Exit(1)

    saved = engine.replace_milestones(milestones)
    console.print(f"[green]Saved {len(saved)} milestones[/green]")


if __name__ == "__main__":
    app()
