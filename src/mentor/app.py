"""Interactive console for tutors and the coordinator."""
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from mentor.catalog import list_chapters, list_subjects
from mentor.config import load_settings
from mentor.dashboard import (
    get_progress_color, get_progress_label, get_subject_progress, get_teacher_stats, progress_bar,
)
from mentor.db import init_db
from mentor.errors import MentorError
from mentor.importer import import_file, split_list
from mentor.models import STATUSES
from mentor.progress import complete_class, get_progress_history
from mentor.schedule import (
    add_holiday, list_holidays, remove_holiday, teacher_students, today_sessions, weekly_schedule,
)
from mentor.seed import is_seeded, seed_all
from mentor.subscriptions import (
    create_subscription, delete_subscription, get_subscription, update_subscription,
)

console = Console()


def configure_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def show_welcome():
    console.print(Panel(
        "[bold]Mentor[/bold]\n[dim]Tutoring progress & schedule[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("today", "Today's sessions"),
        ("week", "Weekly schedule"),
        ("students", "Active students"),
        ("show", "Subscription details"),
        ("complete", "Mark a class complete"),
        ("history", "Progress history"),
        ("add", "New subscription"),
        ("edit", "Update a subscription"),
        ("remove", "Delete a subscription"),
        ("dashboard", "Progress overview"),
        ("chapters", "Curriculum catalog"),
        ("holidays", "Holiday calendar"),
        ("import", "Import subscriptions from file"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def ask_teacher(default: Optional[str]) -> str:
    if default:
        return Prompt.ask("Teacher ID", default=default).strip()
    return Prompt.ask("Teacher ID").strip()


def cmd_today(db_path: str, teacher_id: str, today: Optional[date] = None):
    result = today_sessions(db_path, teacher_id, today=today)
    if result["is_holiday"]:
        console.print(f"[yellow]Holiday: {result['holiday_name']}. No classes today.[/yellow]")
        return
    if not result["sessions"]:
        console.print(f"[dim]No sessions on {result['today']} for teacher {teacher_id}.[/dim]")
        return
    table = Table(title=f"Sessions for {result['today']} {result['date']}")
    table.add_column("Time")
    table.add_column("ID", justify="right")
    table.add_column("Student", style="cyan")
    table.add_column("Class", justify="right")
    table.add_column("Next up")
    table.add_column("Progress", justify="right")
    for s in result["sessions"]:
        next_up = "\n".join(
            f"{p['subject']}: Ch {p['current_chapter']} Pt {p['current_part']}"
            for p in s["subject_progress"]
        )
        color = get_progress_color(s["progress_percent"])
        table.add_row(
            s["time"], str(s["subscription_id"]), s["student_name"], str(s["class_level"]),
            next_up, f"[{color}]{s['progress_percent']:.1f}%[/{color}]",
        )
    console.print(table)


def cmd_week(db_path: str, teacher_id: str):
    sessions = weekly_schedule(db_path, teacher_id)
    if not sessions:
        console.print("[dim]No active students.[/dim]")
        return
    table = Table(title=f"Weekly schedule: teacher {teacher_id}")
    table.add_column("Time")
    table.add_column("Student", style="cyan")
    table.add_column("Days")
    table.add_column("Subjects")
    for s in sessions:
        table.add_row(s["time"], s["student_name"], ", ".join(s["schedule_days"]), ", ".join(s["subjects"]))
    console.print(table)


def cmd_students(db_path: str, teacher_id: str):
    students = teacher_students(db_path, teacher_id)
    if not students:
        console.print("[dim]No active students.[/dim]")
        return
    table = Table(title="Students")
    table.add_column("ID", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Class", justify="right")
    table.add_column("Subjects")
    table.add_column("Time")
    for st in students:
        table.add_row(
            str(st["subscription_id"]), st["name"], str(st["class_level"]),
            ", ".join(st["subjects"]), st["time"],
        )
    console.print(table)


def cmd_show(db_path: str):
    sub = get_subscription(db_path, IntPrompt.ask("Subscription ID"))
    color = get_progress_color(sub.progress_percent)
    console.print(Panel(
        f"[bold]{sub.student_name}[/bold]  Class {sub.class_level}  ({sub.status})\n"
        f"Teacher {sub.teacher_id}  {', '.join(sub.schedule_days)} at {sub.time}\n"
        f"[{color}]{progress_bar(sub.progress_percent)}[/{color}] "
        f"{sub.completed_classes}/{sub.total_classes} classes ({sub.progress_percent:.1f}%)",
        title=f"Subscription {sub.id}",
    ))
    table = Table()
    table.add_column("Subject", style="cyan")
    table.add_column("Chapter", justify="right")
    table.add_column("Part", justify="right")
    table.add_column("Done", justify="right")
    table.add_column("Status")
    for row in get_subject_progress(sub):
        c = get_progress_color(row["progress_percent"])
        table.add_row(
            row["subject"], str(row["current_chapter"]), str(row["current_part"]),
            f"{row['parts_done']}/{row['parts_needed']}",
            f"[{c}]{get_progress_label(row['progress_percent'])}[/{c}]",
        )
    console.print(table)


def cmd_complete(db_path: str, teacher_id: str):
    sub = get_subscription(db_path, IntPrompt.ask("Subscription ID"))
    subject = Prompt.ask("Subject", choices=sub.subjects)
    notes = Prompt.ask("Notes", default="")
    result = complete_class(db_path, sub.id, subject, teacher_id, notes)
    console.print(
        f"[green]Class recorded.[/green] {subject} is now at chapter {result['new_chapter']} "
        f"part {result['new_part']}. Overall {result['progress_percent']:.1f}%"
    )


def cmd_history(db_path: str):
    subscription_id = IntPrompt.ask("Subscription ID")
    events = get_progress_history(db_path, subscription_id)
    if not events:
        console.print("[dim]No classes recorded yet.[/dim]")
        return
    table = Table(title=f"Progress history: subscription {subscription_id}")
    table.add_column("When")
    table.add_column("Subject", style="cyan")
    table.add_column("Chapter", justify="right")
    table.add_column("Part", justify="right")
    table.add_column("Teacher")
    table.add_column("Notes")
    for e in events:
        table.add_row(e.completed_at[:16].replace("T", " "), e.subject, str(e.chapter), str(e.part), e.teacher_id, e.notes)
    console.print(table)


def cmd_add(db_path: str, teacher_id: Optional[str]):
    class_level = IntPrompt.ask("Class")
    known = list_subjects(db_path, class_level)
    if known:
        console.print(f"[dim]Catalog subjects: {', '.join(known)}[/dim]")
    sub = create_subscription(
        db_path,
        student_name=Prompt.ask("Student name"),
        class_level=class_level,
        subjects=split_list(Prompt.ask("Subjects (comma separated)")),
        teacher_id=ask_teacher(teacher_id),
        schedule_days=split_list(Prompt.ask("Days (e.g. Sat,Mon,Wed)")),
        time=Prompt.ask("Time (HH:MM)", default="16:00"),
        student_phone=Prompt.ask("Student phone", default=""),
        guardian_name=Prompt.ask("Guardian name", default=""),
        guardian_phone=Prompt.ask("Guardian phone", default=""),
        amount=float(Prompt.ask("Monthly amount", default="0")),
        billing_date=IntPrompt.ask("Billing day of month", default=1),
    )
    console.print(f"[green]Created subscription {sub.id} with {sub.total_classes} classes.[/green]")


def cmd_edit(db_path: str):
    sub = get_subscription(db_path, IntPrompt.ask("Subscription ID"))
    console.print("[dim]Press Enter to keep the current value.[/dim]")
    changes = {}
    class_level = IntPrompt.ask("Class", default=sub.class_level)
    if class_level != sub.class_level:
        changes["class_level"] = class_level
    subjects = split_list(Prompt.ask("Subjects", default=", ".join(sub.subjects)))
    if subjects != sub.subjects:
        changes["subjects"] = subjects
    days = split_list(Prompt.ask("Days", default=", ".join(sub.schedule_days)))
    if days != sub.schedule_days:
        changes["schedule_days"] = days
    time = Prompt.ask("Time", default=sub.time)
    if time != sub.time:
        changes["time"] = time
    status = Prompt.ask("Status", choices=list(STATUSES), default=sub.status)
    if status != sub.status:
        changes["status"] = status
    if not changes:
        console.print("[dim]Nothing changed.[/dim]")
        return
    sub = update_subscription(db_path, sub.id, **changes)
    console.print(f"[green]Updated. {sub.completed_classes}/{sub.total_classes} classes ({sub.progress_percent:.1f}%).[/green]")


def cmd_remove(db_path: str):
    sub = get_subscription(db_path, IntPrompt.ask("Subscription ID"))
    if not Confirm.ask(f"Delete {sub.student_name} and all progress?", default=False):
        return
    delete_subscription(db_path, sub.id)
    console.print(f"[green]Deleted subscription {sub.id}.[/green]")


def cmd_dashboard(db_path: str, teacher_id: Optional[str]):
    stats = get_teacher_stats(db_path, teacher_id)
    title = f"Teacher {teacher_id}" if teacher_id else "All teachers"
    color = get_progress_color(stats["avg_progress"])
    console.print(Panel(
        f"Students: [bold]{stats['students']}[/bold]  |  "
        f"Classes: [bold]{stats['completed_classes']}/{stats['total_classes']}[/bold]\n"
        f"Average progress: [{color}]{progress_bar(stats['avg_progress'])}[/{color}] "
        f"[bold]{stats['avg_progress']}%[/bold] [{color}]{get_progress_label(stats['avg_progress'])}[/{color}]",
        title=title, border_style="blue",
    ))


def cmd_chapters(db_path: str):
    class_level = Prompt.ask("Class (blank for all)", default="")
    entries = list_chapters(db_path, int(class_level) if class_level else None)
    table = Table(title="Curriculum Catalog")
    table.add_column("Class", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Chapters", justify="right")
    for entry in entries:
        table.add_row(str(entry.class_level), entry.subject, str(entry.total_chapters))
    console.print(table)


def cmd_holidays(db_path: str):
    action = Prompt.ask("Holidays", choices=["list", "add", "remove"], default="list")
    if action == "add":
        day = date.fromisoformat(Prompt.ask("Date (YYYY-MM-DD)"))
        add_holiday(db_path, day, Prompt.ask("Name"))
        console.print(f"[green]Added holiday on {day}.[/green]")
        return
    if action == "remove":
        day = date.fromisoformat(Prompt.ask("Date (YYYY-MM-DD)"))
        if remove_holiday(db_path, day):
            console.print(f"[green]Removed holiday on {day}.[/green]")
        else:
            console.print(f"[yellow]No holiday on {day}.[/yellow]")
        return
    table = Table(title="Holidays")
    table.add_column("Date")
    table.add_column("Name", style="cyan")
    for h in list_holidays(db_path):
        table.add_row(h.date, h.name)
    console.print(table)


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_file(db_path, file_path)
    console.print(f"[green]Imported {len(result['created'])} subscriptions from {result['filename']}[/green]")
    for err in result["errors"]:
        console.print(f"  [yellow]record {err['record']}: {err['error']}[/yellow]")


def run_command(choice: str, db_path: str, teacher_id: Optional[str]) -> bool:
    """Dispatch one menu command. Returns False when the user asked to quit."""
    if choice == "today":
        cmd_today(db_path, ask_teacher(teacher_id))
    elif choice == "week":
        cmd_week(db_path, ask_teacher(teacher_id))
    elif choice == "students":
        cmd_students(db_path, ask_teacher(teacher_id))
    elif choice == "show":
        cmd_show(db_path)
    elif choice == "complete":
        cmd_complete(db_path, ask_teacher(teacher_id))
    elif choice == "history":
        cmd_history(db_path)
    elif choice == "add":
        cmd_add(db_path, teacher_id)
    elif choice == "edit":
        cmd_edit(db_path)
    elif choice == "remove":
        cmd_remove(db_path)
    elif choice == "dashboard":
        cmd_dashboard(db_path, teacher_id)
    elif choice == "chapters":
        cmd_chapters(db_path)
    elif choice == "holidays":
        cmd_holidays(db_path)
    elif choice == "import":
        cmd_import(db_path)
    elif choice in ("quit", "exit", "q"):
        return False
    else:
        console.print("[red]Unknown command. Try again.[/red]")
    return True


def main():
    settings = load_settings()
    configure_logging(settings.log_level)
    db_path = settings.db_path
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="today").strip().lower()
        try:
            if not run_command(choice, db_path, settings.teacher_id):
                console.print("[dim]Goodbye![/dim]")
                break
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except MentorError as e:
            console.print(f"[red]{e}[/red]")
        except ValueError as e:
            console.print(f"[red]Invalid input: {e}[/red]")


if __name__ == "__main__":
    main()
