from __future__ import annotations

import logging
from typing import Optional

from jose import JWTError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from classalert import routes
from classalert.alerts import AlertsView
from classalert.api import ApiError
from classalert.app import App
from classalert.cli import format_timestamp, gpa_text, section_line
from classalert.config import CARRIERS
from classalert.model import Professor
from classalert.search import SORT_CHOICES, SearchView, render_stars, separator_index
from classalert.search_log import rmp_rows
from classalert.settings import SettingsView, carrier_name

log = logging.getLogger(__name__)

console = Console()

HELP_SECTIONS: list[tuple[str, str]] = [
    (
        "What is AggieClassAlert?",
        "A service that watches the seats of the classes you want and notifies you "
        "as soon as one opens, so you can register before anyone else.",
    ),
    (
        "How to use it",
        "1. Sign in with your email or Google account.\n"
        "2. Find a course under Search Professors and add an alert for a section, "
        "or add a CRN directly under My Alerts.\n"
        "3. Get an email when a seat opens. Verify a phone under Settings for SMS.\n"
        "4. Register in Howdy as quickly as possible.",
    ),
    (
        "Managing your alerts",
        "My Alerts lists every alert with its current status. You can add alerts, "
        "remove the ones you no longer need and switch SMS on or off per alert.",
    ),
    (
        "SMS notifications",
        "Add your phone number, select your carrier and confirm the code we text you. "
        "Texts go through email-to-SMS gateways of the major carriers.",
    ),
    (
        "Professor search",
        "Shows historical GPA per professor, who teaches next semester, "
        "RateMyProfessor ratings when available, and section availability and meeting times.",
    ),
    (
        "Need more help?",
        "Contact aggieclassalert@gmail.com.",
    ),
]


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    return console.input(escape(msg))


def _show_messages(messages: list[tuple[str, str]]) -> None:
    for kind, text in messages:
        if kind == "error":
            _println(f"[bold red]{escape(text)}[/]")
        else:
            _println(f"[green]{escape(text)}[/]")


def _yes(msg: str) -> bool:
    return _prompt(f"{msg} [y/N]: ").strip().lower() in ("y", "yes")


def run_interactive(app: App) -> None:
    """
    Interactive menu loop over the site's pages.
    """
    keys = {str(i): path for i, path in enumerate(routes.NAV, start=1)}

    while True:
        _print_header(app)

        menu = "".join(f"[{k}] {routes.resolve(p).title}\n" for k, p in keys.items())
        login_label = "Logout" if app.auth.is_logged_in else "Login"
        choice = _prompt(f"\n{menu}[9] {login_label}\n[0] Exit\nSelect: ").strip()

        if choice == "0":
            _println("Bye.")
            return
        if choice == "9":
            if app.auth.is_logged_in:
                app.auth.logout()
                _println("Logged out successfully")
            else:
                _flow_login(app)
            continue
        if choice not in keys:
            _println("Invalid choice.")
            continue

        open_page(app, keys[choice])


def open_page(app: App, path: str) -> None:
    route = routes.resolve(path)

    if routes.needs_login_prompt(route.path, app.auth.is_logged_in):
        _println("\n[bold]Sign in to continue[/]")
        _println("Please sign in to access this feature.")
        if not _flow_login(app):
            return

    if route.path == routes.MY_ALERTS:
        _page_alerts(app)
    elif route.path == routes.SEARCH:
        _page_search(app)
    elif route.path == routes.SETTINGS:
        _page_settings(app)
    elif route.path == routes.HELP:
        _page_help()


def _print_header(app: App) -> None:
    identity = app.auth.resolve_identity()
    _println("\n[bold]=== AggieClassAlert ===[/]")
    if identity.is_anonymous:
        _println("Not signed in")
    else:
        _println(f"Signed in as [cyan]{escape(identity.email)}[/]")


def _flow_login(app: App) -> bool:
    how = _prompt("[1] Email  [2] Google identity token  [blank = back]: ").strip()
    if how == "1":
        email = _prompt("Email: ").strip()
        try:
            cleaned = app.auth.login_with_email(email)
        except ValueError as e:
            _println(f"[red]{escape(str(e))}[/]")
            return False
        except ApiError as e:
            _println(f"[red]{escape(e.message or 'Login failed. Please try again.')}[/]")
            return False
        _println(f"[green]Login successful![/] Signed in as {escape(cleaned)}")
        return True

    if how == "2":
        token = _prompt("Token: ").strip()
        try:
            app.auth.login(token)
        except JWTError:
            _println("[red]Invalid identity token.[/]")
            return False
        return app.auth.is_logged_in

    return False


# ---------------------------------------------------------------------------
# My Alerts
# ---------------------------------------------------------------------------


def _alerts_table(view: AlertsView) -> Table:
    title = f"Alerts for {view.email_filter}" if view.is_filtering_by_email else "All alerts"
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("CRN")
    table.add_column("Term")
    table.add_column("Status")
    table.add_column("Email")
    table.add_column("Last checked")
    table.add_column("SMS")
    for i, a in enumerate(view.alerts, start=1):
        status = "[green]Available[/]" if a.status else "[yellow]Not Available[/]"
        sms = "[green]on[/]" if a.use_phone else "off"
        table.add_row(str(i), a.crn, a.term, status, a.email or "Not provided", format_timestamp(a.last_checked), sms)
    return table


def _pick_alert(view: AlertsView, action: str) -> Optional[int]:
    pick = _prompt(f"Number of the alert to {action} [blank = cancel]: ").strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(view.alerts)):
        _println("Out of range.")
        return None
    return int(pick) - 1


def _page_alerts(app: App) -> None:
    view = AlertsView(app.client, app.auth)
    view.load()

    while True:
        _show_messages(view.pop_messages())

        if view.phone_verified:
            _println(
                f"Your verified phone ({view.phone_number}) can receive SMS alerts. "
                "Toggle SMS for each alert in the table below."
            )

        if view.alerts:
            console.print(_alerts_table(view))
        else:
            _println("No alerts yet.")

        filter_label = "Show all alerts" if view.is_filtering_by_email else "Show my alerts"
        choice = _prompt(
            "\n[a] Add alert  [d] Delete  [s] Toggle SMS  [c] Sample CRNs  "
            f"[f] {filter_label}  [r] Refresh  [blank = back]: "
        ).strip().lower()

        if not choice:
            return
        if choice == "a":
            _flow_add_alert(view)
        elif choice == "d":
            idx = _pick_alert(view, "delete")
            if idx is not None:
                a = view.alerts[idx]
                view.delete_alert(a.crn, a.term, a.email or view.email, _yes)
        elif choice == "s":
            if not view.phone_verified:
                _println("Verify your phone number in Settings first.")
                continue
            idx = _pick_alert(view, "toggle SMS for")
            if idx is not None:
                a = view.alerts[idx]
                view.toggle_phone_notification(a.crn, a.term, a.use_phone)
        elif choice == "c":
            view.fetch_sample_crns()
            if view.sample_crns:
                for term, crns in sorted(view.sample_crns.items()):
                    _println(f"[bold]{term}[/]: {', '.join(crns)}")
            else:
                _println("No sample CRNs available.")
        elif choice == "f":
            if view.is_filtering_by_email:
                view.clear_email_filter()
            elif view.email:
                view.email_filter = view.email
                view.fetch_alerts_by_email(view.email)
        elif choice == "r":
            view.refresh()
        else:
            _println("Invalid choice.")


def _flow_add_alert(view: AlertsView) -> None:
    crn = _prompt("CRN: ").strip()
    if not view.is_logged_in:
        view.email = _prompt("Email: ").strip()
    if view.phone_verified:
        view.enable_sms = not _prompt("Enable SMS for this alert? [Y/n]: ").strip().lower().startswith("n")
    view.add_alert(crn)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


def _professor_table(view: SearchView, profs: list[Professor]) -> Table:
    table = Table(title=f"{view.display_department} {view.display_course_code}", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Professor")
    table.add_column("GPA", justify="right")
    table.add_column("")
    table.add_column("Regular", justify="right")
    table.add_column("Honors", justify="right")
    table.add_column("RMP", justify="right")
    table.add_column("Sections", justify="right")

    sep = separator_index(profs, view.sort_by)
    for i, p in enumerate(profs, start=1):
        if i - 1 == sep:
            table.add_section()
        name = f"[bold]{escape(p.name)}[/]"
        if p.has_honors:
            name += " [magenta](H)[/]"
        if p.fall_name and p.fall_name != p.name:
            name += f"\n[dim]Listed as: {escape(p.fall_name)}[/]"
        table.add_row(
            str(i),
            name,
            gpa_text(p.average_gpa),
            f"[yellow]{render_stars(p.average_gpa)}[/]",
            f"{gpa_text(p.regular_gpa)} ({p.regular_count})" if p.has_regular else "",
            f"{gpa_text(p.honors_gpa)} ({p.honors_count})" if p.has_honors else "",
            str(p.rmp_rating) if p.rmp_found and p.rmp_rating is not None else "",
            str(len(p.courses)),
        )
    return table


def _rmp_table(profs: list[Professor]) -> Table:
    rows = rmp_rows(profs)
    table = Table(title="RateMyProfessor data", box=box.SIMPLE)
    for col in (rows[0].keys() if rows else []):
        table.add_column(col)
    for row in rows:
        table.add_row(*row.values())
    return table


def _page_search(app: App) -> None:
    view = SearchView(app.client, app.store)
    view.load()

    while True:
        department = _prompt("Department (e.g. CSCE) [blank = back]: ").strip()
        if not department:
            return
        course_code = _prompt("Course number (e.g. 121): ").strip()
        galveston = _yes("Include Galveston sections?")

        sort_in = _prompt(f"Sort by {'/'.join(SORT_CHOICES)} [overall]: ").strip().lower()
        view.sort_by = sort_in if sort_in in SORT_CHOICES else "overall"

        with console.status("Searching..."):
            ok = view.search(department, course_code, include_galveston=galveston)
        if not ok:
            _println(f"[red]{escape(view.error)}[/]")
            continue

        for line in view.summary():
            _println(line)

        profs = view.sorted_professors
        if not profs:
            _println("No professors found teaching next semester.")
            continue

        console.print(_professor_table(view, profs))
        if view.rmp_module_available and _yes("Show RateMyProfessor details?"):
            console.print(_rmp_table(profs))

        _flow_professor_details(view, profs)


def _flow_professor_details(view: SearchView, profs: list[Professor]) -> None:
    while True:
        pick = _prompt("Professor number for sections [blank = new search]: ").strip()
        if not pick:
            return
        if not pick.isdigit() or not (1 <= int(pick) <= len(profs)):
            _println("Out of range.")
            continue

        sections = view.professor_sections(profs[int(pick) - 1])
        if sections is None:
            _println(f"[red]{escape(view.error)}[/]")
            view.error = ""
            continue

        prof = view.selected_professor
        if prof is None:
            continue

        table = Table(title=f"Sections taught by {prof.name}", box=box.SIMPLE)
        table.add_column("#", justify="right")
        table.add_column("Section")
        table.add_column("CRN")
        table.add_column("Seats")
        table.add_column("Meetings")
        for i, c in enumerate(prof.courses, start=1):
            seats = "[green]Open[/]" if c.is_available else "[red]Closed[/]"
            table.add_row(str(i), c.section, c.crn, seats, "\n".join(view.course_meeting_info(c.section, c)))
        console.print(table)

        for s in sections:
            log.debug(section_line(s))

        while True:
            add = _prompt("Section number to add an alert for [blank = back]: ").strip()
            if not add:
                break
            if not add.isdigit() or not (1 <= int(add) <= len(prof.courses)):
                _println("Out of range.")
                continue
            course = prof.courses[int(add) - 1]
            status = view.add_alert(course.crn, course.section)
            color = "green" if status.success else "red"
            _println(f"[{color}]{escape(status.message)}[/]")

        view.close_details()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def _page_settings(app: App) -> None:
    view = SettingsView(app.client, app.store)
    with console.status("Loading your settings..."):
        view.load()
    view.restore_pending()

    while True:
        if view.phone_info:
            info = view.phone_info
            when = info.verified_at.strftime("%Y-%m-%d") if info.verified_at else "-"
            _println(
                f"\n[bold]Verified phone[/] [green](Active)[/]: {info.phone_number} | "
                f"{carrier_name(info.carrier)} | verified on {when}"
            )
            _println("This phone number will receive SMS alerts when your watched classes become available.")
        elif view.phone_number:
            _println(f"\nPhone on file (not verified): {view.phone_number} | {carrier_name(view.carrier)}")

        if view.verification_error:
            _println(f"[red]{escape(view.verification_error)}[/]")
            view.verification_error = ""
        if view.success_message:
            _println(f"[green]{escape(view.success_message)}[/]")
            view.success_message = ""

        choice = _prompt("\n[1] Set phone & send code  [2] Enter code  [3] Save  [4] Start over  [blank = back]: ").strip()
        if not choice:
            return

        if choice == "1":
            number = _prompt("Phone number (10 digits): ")
            for i, c in enumerate(CARRIERS, start=1):
                _println(f"{i}) {c['name']}")
            pick = _prompt("Carrier number: ").strip()
            carrier = CARRIERS[int(pick) - 1]["id"] if pick.isdigit() and 1 <= int(pick) <= len(CARRIERS) else ""
            view.set_phone(number, carrier)
            if view.send_verification_code():
                _println(f"Code sent to {view.gateway_address()}.")
        elif choice == "2":
            if not view.verification_sent:
                _println("Send a verification code first.")
                continue
            view.verify_code(_prompt("Verification code: "))
        elif choice == "3":
            view.save()
        elif choice == "4":
            view.reset()
        else:
            _println("Invalid choice.")


def _page_help() -> None:
    for title, body in HELP_SECTIONS:
        _println(f"\n[bold]{title}[/]")
        _println(body)
    _prompt("\nPress Enter to go back...")
