"""Command-line interface for readclub.

Built with Typer for commands and Rich for output. Each command drives a
store action and then renders the alerts and toasts it produced.
"""

import logging
from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import get_config
from .context import ClientContext, build_context
from .notify import ToastKind, report
from .state import HANDLED_ERRORS, error_message
from .streaks import LeaderboardPeriod

# Create the main app
app = typer.Typer(
    name="readclub",
    help="Read, check in and keep your streak alive from the terminal.",
    no_args_is_help=True,
)

# Sub-apps for command groups
auth_app = typer.Typer(help="Log in and manage your account.")
app.add_typer(auth_app, name="auth")

session_app = typer.Typer(help="Time reading sessions and view reading stats.")
app.add_typer(session_app, name="session")

streak_app = typer.Typer(help="Daily check-ins, streaks and challenges.")
app.add_typer(streak_app, name="streak")

wallet_app = typer.Typer(help="Your Ink Drops.")
app.add_typer(wallet_app, name="wallet")

console = Console()

_context: Optional[ClientContext] = None


def get_context() -> ClientContext:
    """Get or create the client context for this process."""
    global _context
    if _context is None:
        _context = build_context(get_config())
    return _context


def reset_context() -> None:
    """Reset the client context. Used for testing."""
    global _context
    _context = None


# ============================================================================
# Helper Functions
# ============================================================================


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


def flush_notifications(ctx: ClientContext) -> bool:
    """Print and clear pending toasts and alerts. Returns True if any alert was shown."""
    styles = {
        ToastKind.SUCCESS: "bold green",
        ToastKind.ERROR: "bold red",
        ToastKind.INFO: "dim",
    }
    for toast in list(ctx.toasts.state.toasts):
        console.print(f"[{styles[toast.kind]}]{toast.message}[/{styles[toast.kind]}]")
        ctx.toasts.dismiss(toast.id)

    shown = False
    while ctx.alerts.state.current is not None:
        alert = ctx.alerts.dismiss()
        console.print(Panel(alert.message, title=f"[red]{alert.title}[/red]"))
        shown = True
    return shown


def finish(ctx: ClientContext) -> None:
    """Render notifications and exit non-zero if an alert was raised."""
    if flush_notifications(ctx):
        raise typer.Exit(1)


def require_login(ctx: ClientContext) -> None:
    if not ctx.auth.state.is_authenticated:
        print_error("You are not logged in. Run 'readclub auth login' first.")
        raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP traffic"),
) -> None:
    """readclub command-line client."""
    level = "DEBUG" if verbose else get_config().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from . import __version__

    console.print(f"readclub version {__version__}")


# ============================================================================
# Auth Commands
# ============================================================================


@auth_app.command("login")
def auth_login(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Email or username"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
) -> None:
    """Log in to your account."""
    ctx = get_context()
    result = ctx.auth.login(email, password)
    report(result, ctx.alerts, ctx.toasts, error_title="Login failed")
    if result.success:
        ctx.toasts.show(f"Welcome back, {result.data.username}!", ToastKind.SUCCESS)
    finish(ctx)


@auth_app.command("register")
def auth_register(
    username: str = typer.Option(..., "--username", "-u", prompt=True),
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Create an account."""
    ctx = get_context()
    result = ctx.auth.register(username, email, password)
    report(result, ctx.alerts, ctx.toasts, "Account created", error_title="Sign up failed")
    finish(ctx)


@auth_app.command("logout")
def auth_logout() -> None:
    """Log out and forget the saved token."""
    ctx = get_context()
    ctx.auth.logout()
    console.print("[green]Logged out[/green]")


@auth_app.command("whoami")
def auth_whoami() -> None:
    """Show the logged-in user."""
    ctx = get_context()
    require_login(ctx)

    result = ctx.auth.refresh_user()
    report(result, ctx.alerts, ctx.toasts)
    user = ctx.auth.state.user
    if result.success and user:
        content = f"[bold]{user.username}[/bold]"
        if user.email:
            content += f"\n{user.email}"
        if user.level is not None:
            content += f"\nLevel {user.level}, {user.points or 0} points"
        console.print(Panel(content, title="[blue]Account[/blue]"))
    finish(ctx)


# ============================================================================
# Session Commands
# ============================================================================


@session_app.command("start")
def session_start(
    book_id: str = typer.Argument(..., help="Book ID"),
    bookshelf_item_id: str = typer.Argument(..., help="Bookshelf item ID"),
    page: int = typer.Option(0, "--page", "-p", help="Page you are starting from"),
) -> None:
    """Start a reading session."""
    ctx = get_context()
    require_login(ctx)

    result = ctx.sessions.start_session(book_id, bookshelf_item_id, page)
    report(result, ctx.alerts, ctx.toasts, f"Reading session started at page {page}")
    finish(ctx)


@session_app.command("pause")
def session_pause(
    minutes: float = typer.Option(..., "--minutes", "-m", help="Length of the pause"),
) -> None:
    """Record a pause in the active session."""
    ctx = get_context()
    if not ctx.sessions.has_active_session():
        print_error("No active reading session")
        raise typer.Exit(1)
    if minutes < 0:
        print_error("Pause length cannot be negative")
        raise typer.Exit(1)

    ctx.sessions.record_pause(minutes)
    state = ctx.sessions.state
    print_info(f"{state.pause_count} pauses, {state.total_pause_duration:g} min total")


@session_app.command("end")
def session_end(
    page: int = typer.Option(..., "--page", "-p", help="Page you stopped at"),
) -> None:
    """End the active reading session."""
    ctx = get_context()
    require_login(ctx)

    result = ctx.sessions.end_session(page)
    report(result, ctx.alerts, ctx.toasts)
    if result.success:
        record = result.data.session
        content_parts = [result.data.message or "Session completed"]
        if record.duration is not None:
            content_parts.append(f"Duration: {record.duration:g} min")
        if record.pages_read is not None:
            content_parts.append(f"Pages read: {record.pages_read}")
        if record.focus_score is not None:
            content_parts.append(f"Focus score: {record.focus_score:g}")
        console.print(Panel("\n".join(content_parts), title="[green]Session Ended[/green]"))
    finish(ctx)


@session_app.command("status")
def session_status() -> None:
    """Show the active reading session."""
    ctx = get_context()
    state = ctx.sessions.state
    session = state.active_session
    if not session:
        print_info("No active reading session")
        return

    content = (
        f"Book: {session.book_id}\n"
        f"Started: {session.start_time or '-'} at page {session.start_page}\n"
        f"Pauses: {state.pause_count} ({state.total_pause_duration:g} min)"
    )
    console.print(Panel(content, title="[blue]Reading Now[/blue]"))


@session_app.command("list")
def session_list(
    limit: int = typer.Option(10, "--limit", "-n", help="Sessions per page"),
    pages: int = typer.Option(1, "--pages", help="How many pages to load"),
    book: Optional[str] = typer.Option(None, "--book", "-b", help="Bookshelf item ID"),
) -> None:
    """List past reading sessions."""
    from .reading import SessionFilters

    ctx = get_context()
    require_login(ctx)

    result = ctx.sessions.fetch_sessions(SessionFilters(limit=limit, bookshelf_item_id=book))
    for _ in range(pages - 1):
        if not ctx.sessions.state.has_more:
            break
        ctx.sessions.load_more()
    report(result, ctx.alerts, ctx.toasts)

    state = ctx.sessions.state
    if result.success:
        if not state.sessions:
            print_info("No reading sessions yet")
        else:
            table = Table(title=f"Reading Sessions ({len(state.sessions)} of {state.total})")
            table.add_column("Date")
            table.add_column("Book", style="cyan")
            table.add_column("Pages", justify="right")
            table.add_column("Minutes", justify="right")
            table.add_column("Ink Drops", justify="right")

            for session in state.sessions:
                table.add_row(
                    session.session_date or "-",
                    session.book_id,
                    f"{session.start_page}-{session.end_page if session.end_page is not None else '?'}",
                    f"{session.duration:g}" if session.duration is not None else "-",
                    str(session.ink_drops_earned or 0),
                )
            console.print(table)
    finish(ctx)


@session_app.command("stats")
def session_stats(
    days: int = typer.Option(7, "--days", "-d", help="Days of daily stats"),
) -> None:
    """Show reading statistics."""
    ctx = get_context()
    require_login(ctx)

    overall = ctx.sessions.fetch_overall_stats()
    daily = ctx.sessions.fetch_daily_stats(days)

    if overall:
        content = (
            f"Sessions: {overall.total_sessions}\n"
            f"Time: {overall.total_minutes:g} min\n"
            f"Pages: {overall.total_pages}\n"
            f"Average speed: {overall.average_speed or 0:.1f} pages/hour\n"
            f"Average focus: {overall.average_focus_score or 0:.0f}\n"
            f"Longest session: {overall.longest_session:g} min"
        )
        console.print(Panel(content, title="[blue]Reading Stats[/blue]"))

    if daily:
        table = Table(title=f"Last {days} days")
        table.add_column("Date")
        table.add_column("Minutes", justify="right")
        table.add_column("Pages", justify="right")
        table.add_column("Sessions", justify="right")
        for stat in daily:
            table.add_row(stat.date, f"{stat.total_minutes:g}", str(stat.total_pages), str(stat.session_count))
        console.print(table)

    if ctx.sessions.state.error:
        ctx.alerts.show("Error", ctx.sessions.state.error)
    finish(ctx)


@session_app.command("calendar")
def session_calendar(
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    month: Optional[int] = typer.Option(None, "--month", "-m"),
) -> None:
    """Show which days of a month count towards your streak."""
    import calendar as cal

    ctx = get_context()
    require_login(ctx)

    today = date.today()
    year = year or today.year
    month = month or today.month

    result = ctx.sessions.fetch_calendar(year, month)
    if result is None:
        ctx.alerts.show("Error", ctx.sessions.state.error or "Could not load calendar")
        finish(ctx)
        return

    read_days = {int(day.split("-")[-1]) for day in result.streak_days}
    table = Table(title=f"{cal.month_name[month]} {year}")
    for name in ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su"):
        table.add_column(name, justify="center")
    for week in cal.monthcalendar(year, month):
        table.add_row(*[
            "" if day == 0 else (f"[bold green]{day}[/bold green]" if day in read_days else str(day))
            for day in week
        ])
    console.print(table)
    print_info(f"{len(read_days)} reading days")


@session_app.command("leaderboard")
def session_leaderboard(
    limit: int = typer.Option(10, "--limit", "-n"),
) -> None:
    """Show this month's top readers by reading time."""
    ctx = get_context()
    require_login(ctx)

    entries = ctx.sessions.fetch_leaderboard(limit)
    if entries is None:
        ctx.alerts.show("Error", ctx.sessions.state.error or "Could not load leaderboard")
        finish(ctx)
        return

    table = Table(title="Monthly Reading Leaderboard")
    table.add_column("#", justify="right")
    table.add_column("Reader", style="cyan")
    table.add_column("Minutes", justify="right")
    table.add_column("Pages", justify="right")
    for rank, entry in enumerate(entries, 1):
        table.add_row(str(rank), entry.username or entry.user_id, f"{entry.total_minutes:g}", str(entry.total_pages))
    console.print(table)


# ============================================================================
# Streak Commands
# ============================================================================


@streak_app.command("show")
def streak_show() -> None:
    """Show your current streak."""
    ctx = get_context()
    require_login(ctx)

    streak = ctx.streaks.fetch_streak()
    if streak is None:
        ctx.alerts.show("Error", ctx.streaks.state.error or "Could not load streak")
        finish(ctx)
        return

    content_parts = [
        f"[bold]Current Streak:[/bold] {streak.current_streak} days",
        f"[bold]Longest Streak:[/bold] {streak.longest_streak} days",
        f"Total check-ins: {streak.total_check_ins}",
    ]
    if streak.last_check_in:
        content_parts.append(f"Last check-in: {streak.last_check_in:%Y-%m-%d %H:%M}")
    achieved = streak.milestones.achieved()
    if achieved:
        content_parts.append("Milestones: " + ", ".join(f"{d} days" for d in achieved))
    if streak.can_restore:
        content_parts.append("[yellow]Your streak is broken. Run 'readclub streak restore'.[/yellow]")

    console.print(Panel("\n".join(content_parts), title="[blue]Streak[/blue]"))


@streak_app.command("check-in")
def streak_check_in() -> None:
    """Check in for today."""
    ctx = get_context()
    require_login(ctx)

    ctx.streaks.fetch_streak()
    try:
        result = ctx.streaks.check_in()
    except HANDLED_ERRORS as e:
        ctx.alerts.show("Check-in failed", error_message(e))
        finish(ctx)
        return

    message = f"Checked in! Streak: {ctx.streaks.state.current_streak} days"
    if result.ink_drops_earned:
        message += f" (+{result.ink_drops_earned} Ink Drops)"
    ctx.toasts.show(message, ToastKind.SUCCESS)
    if result.milestone_achieved:
        ctx.toasts.show(f"Milestone reached: {result.milestone_achieved}!", ToastKind.SUCCESS)
    finish(ctx)


@streak_app.command("restore")
def streak_restore() -> None:
    """Restore a broken streak with Ink Drops."""
    ctx = get_context()
    require_login(ctx)

    result = ctx.streaks.restore_streak()
    report(result, ctx.alerts, ctx.toasts, error_title="Restore failed")
    if result.success:
        ctx.toasts.show(
            f"Streak restored to {result.data.new_streak_count} days "
            f"(-{result.data.ink_drops_deducted} Ink Drops)",
            ToastKind.SUCCESS,
        )
    finish(ctx)


@streak_app.command("leaderboard")
def streak_leaderboard(
    period: LeaderboardPeriod = typer.Option(LeaderboardPeriod.GLOBAL, "--period", "-p"),
) -> None:
    """Show the longest current streaks."""
    ctx = get_context()
    require_login(ctx)

    leaderboard = ctx.streaks.fetch_leaderboard(period)
    if leaderboard is None:
        ctx.alerts.show("Error", ctx.streaks.state.error or "Could not load leaderboard")
        finish(ctx)
        return

    table = Table(title=f"Streak Leaderboard ({period.value})")
    table.add_column("#", justify="right")
    table.add_column("Reader", style="cyan")
    table.add_column("Streak", justify="right")
    for entry in leaderboard.entries:
        name = entry.username or entry.user_id
        if entry.is_current_user:
            name = f"[bold]{name} (you)[/bold]"
        table.add_row(str(entry.rank), name, str(entry.streak_count))
    console.print(table)
    if leaderboard.current_user_rank:
        print_info(f"Your rank: #{leaderboard.current_user_rank}")


@streak_app.command("challenge")
def streak_challenge() -> None:
    """Show today's challenge."""
    ctx = get_context()
    require_login(ctx)

    challenge = ctx.streaks.fetch_today_challenge()
    if challenge is None:
        if ctx.streaks.state.error:
            ctx.alerts.show("Error", ctx.streaks.state.error)
            finish(ctx)
        else:
            print_info("No challenge today")
        return

    status = "[green]Completed[/green]" if challenge.completed else (
        f"{challenge.current_progress}/{challenge.target_count}"
    )
    content = (
        f"{challenge.description}\n"
        f"Progress: {status}\n"
        f"Reward: {challenge.reward_ink_drops} Ink Drops"
    )
    console.print(Panel(content, title="[blue]Today's Challenge[/blue]"))


# ============================================================================
# Wallet Commands
# ============================================================================


@wallet_app.command("balance")
def wallet_balance() -> None:
    """Show your Ink Drop balance."""
    ctx = get_context()
    require_login(ctx)

    balance = ctx.wallet.fetch_balance()
    if balance is None:
        ctx.alerts.show("Error", ctx.wallet.state.error or "Could not load balance")
        finish(ctx)
        return
    console.print(f"[bold]{balance}[/bold] Ink Drops")


@wallet_app.command("rewards")
def wallet_rewards(
    limit: int = typer.Option(10, "--limit", "-n"),
) -> None:
    """Show recently earned Ink Drops."""
    ctx = get_context()
    require_login(ctx)

    history = ctx.wallet.fetch_rewards_history()
    if history is None:
        ctx.alerts.show("Error", ctx.wallet.state.error or "Could not load rewards")
        finish(ctx)
        return

    table = Table(title=f"Rewards ({history.total} Ink Drops earned)")
    table.add_column("Date")
    table.add_column("Reward")
    table.add_column("Amount", justify="right", style="green")
    for reward in history.rewards[:limit]:
        table.add_row(
            f"{reward.date:%Y-%m-%d}" if reward.date else "-",
            reward.description,
            f"+{reward.amount}",
        )
    console.print(table)


@wallet_app.command("tip")
def wallet_tip(
    recipient: str = typer.Argument(..., help="User ID of the author"),
    amount: int = typer.Argument(..., help="Ink Drops to send"),
) -> None:
    """Tip an author with Ink Drops."""
    ctx = get_context()
    require_login(ctx)

    result = ctx.wallet.tip(recipient, amount)
    report(result, ctx.alerts, ctx.toasts, f"Sent {amount} Ink Drops", error_title="Tip failed")
    finish(ctx)
