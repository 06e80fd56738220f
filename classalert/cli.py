"""
CLI (Command Line Interface).

Quick terminal commands for power users and for testing, e.g.:

    classalert login you@tamu.edu
    classalert alerts
    classalert add 12345
    classalert delete 12345 --term 202531
    classalert toggle-sms 12345 --term 202531
    classalert search CSCE 121 --sort honors
    classalert sections CSCE 121 --professor smith
    classalert phone send 9795551234 verizon
    classalert phone confirm AB12C
    classalert interactive

Note:
- The interactive UI lives in classalert/interactive.py
- This CLI prints plain text (no rich formatting)
"""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from typing import Any, Optional

from jose import JWTError

from classalert import config
from classalert.alerts import AlertsView
from classalert.api import ApiError
from classalert.app import App, build_app
from classalert.model import Alert, Professor, Section
from classalert.search import SORT_CHOICES, SORT_OVERALL, SearchView, meeting_lines, render_stars, separator_index
from classalert.search_log import rmp_rows
from classalert.settings import SettingsView, carrier_name

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Formatting helpers (shared with interactive.py)
# ---------------------------------------------------------------------------


def format_timestamp(ts: Optional[float]) -> str:
    if not ts:
        return "Never"
    try:
        return datetime.fromtimestamp(ts).strftime("%Y-%m-%d %H:%M:%S")
    except (OverflowError, OSError, ValueError):
        return "Never"


def alert_line(alert: Alert) -> str:
    status = "Available" if alert.status else "Not Available"
    sms = "SMS on" if alert.use_phone else "SMS off"
    email = alert.email or "Not provided"
    return f"{alert.crn} | {alert.term} | {status} | {email} | checked {format_timestamp(alert.last_checked)} | {sms}"


def gpa_text(gpa: Optional[float]) -> str:
    return f"{gpa:.2f}" if gpa is not None else "N/A"


def professor_line(p: Professor) -> str:
    bits = [p.name]
    if p.fall_name and p.fall_name != p.name:
        bits.append(f"(listed as {p.fall_name})")
    bits.append(f"GPA {gpa_text(p.average_gpa)} {render_stars(p.average_gpa)}")
    if p.has_regular:
        bits.append(f"regular {gpa_text(p.regular_gpa)} ({p.regular_count})")
    if p.has_honors:
        bits.append(f"honors {gpa_text(p.honors_gpa)} ({p.honors_count})")
    if p.rmp_found:
        bits.append(f"RMP {p.rmp_rating if p.rmp_rating is not None else 'N/A'}")
    bits.append(f"{len(p.courses)} section{'' if len(p.courses) == 1 else 's'}")
    return " | ".join(bits)


def section_line(section: Section) -> str:
    seats = "Open" if section.is_open else "Closed"
    bits = [f"Section {section.section}", f"CRN {section.crn}", seats]
    if section.max_enrollment:
        bits.append(f"{section.actual_enrollment or '?'}/{section.max_enrollment} enrolled")
    if section.instructors:
        bits.append(", ".join(section.instructors))
    return " | ".join(bits)


def _print_messages(messages: list[tuple[str, str]]) -> bool:
    """
    Print banners. Returns True if any of them was an error.
    """
    had_error = False
    for kind, text in messages:
        if kind == "error":
            had_error = True
            print(f"Error: {text}")
        else:
            print(text)
    return had_error


def _confirm(question: str) -> bool:
    answer = input(f"{question} [y/N]: ").strip().lower()
    return answer in ("y", "yes")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_login(args: argparse.Namespace, app: App) -> int:
    if args.token:
        try:
            ok = app.auth.login(args.token)
        except JWTError:
            print("Invalid identity token.")
            return 1
        email = app.auth.resolve_identity().email
        if not ok:
            print(f"Signed in as {email or '(no email in token)'}, but the backend sync failed.")
            return 1
        print(f"Login successful! Signed in as {email}")
        return 0

    try:
        email = app.auth.login_with_email(args.email or "")
    except ValueError as e:
        print(str(e))
        return 1
    except ApiError as e:
        print(e.message or "Login failed. Please try again.")
        return 1

    print(f"Login successful! Signed in as {email}")
    return 0


def _cmd_logout(args: argparse.Namespace, app: App) -> int:
    app.auth.logout()
    print("Logged out successfully")
    return 0


def _cmd_whoami(args: argparse.Namespace, app: App) -> int:
    identity = app.auth.resolve_identity()
    if identity.is_anonymous:
        print("Not signed in.")
        return 0
    print(f"{identity.email} (via {identity.source})")
    return 0


def _cmd_alerts(args: argparse.Namespace, app: App) -> int:
    view = AlertsView(app.client, app.auth)
    view.load()
    if args.all and view.is_filtering_by_email:
        view.clear_email_filter()

    had_error = _print_messages(view.pop_messages())

    if view.is_filtering_by_email:
        print(f"Alerts for {view.email_filter}:")
    else:
        print("All alerts:")

    if not view.alerts:
        print("No alerts.")
    for a in view.alerts:
        print(f"- {alert_line(a)}")

    if view.phone_verified:
        print(f"Verified phone: {view.phone_number} ({carrier_name(view.phone_carrier)})")

    return 1 if had_error else 0


def _cmd_samples(args: argparse.Namespace, app: App) -> int:
    view = AlertsView(app.client, app.auth)
    view.fetch_sample_crns()
    if not view.sample_crns:
        print("No sample CRNs available.")
        return 0
    for term, crns in sorted(view.sample_crns.items()):
        print(f"{term}: {', '.join(crns)}")
    return 0


def _cmd_add(args: argparse.Namespace, app: App) -> int:
    view = AlertsView(app.client, app.auth)
    view.load()
    view.pop_messages()

    if args.email and not view.is_logged_in:
        view.email = args.email.strip()
    view.enable_sms = not args.no_sms

    ok = view.add_alert(args.crn)
    _print_messages(view.pop_messages())
    if ok:
        for a in view.alerts:
            print(f"- {alert_line(a)}")
    return 0 if ok else 1


def _cmd_delete(args: argparse.Namespace, app: App) -> int:
    view = AlertsView(app.client, app.auth)
    view.load()
    view.pop_messages()

    email = args.email or view.email
    if not email:
        print("Please login first.")
        return 1

    confirm = (lambda question: True) if args.yes else _confirm
    ok = view.delete_alert(args.crn, args.term, email, confirm)
    had_error = _print_messages(view.pop_messages())
    if not ok and not had_error:
        print("Cancelled.")
    return 0 if ok or not had_error else 1


def _cmd_toggle_sms(args: argparse.Namespace, app: App) -> int:
    view = AlertsView(app.client, app.auth)
    view.load()
    view.pop_messages()

    match = next((a for a in view.alerts if a.crn == args.crn and a.term == args.term), None)
    if match is None:
        print(f"No alert for CRN {args.crn} ({args.term}).")
        return 1

    ok = view.toggle_phone_notification(match.crn, match.term, match.use_phone)
    _print_messages(view.pop_messages())
    return 0 if ok else 1


def _run_search(args: argparse.Namespace, app: App) -> Optional[SearchView]:
    view = SearchView(app.client, app.store, term=args.term)
    view.load()
    view.sort_by = getattr(args, "sort", SORT_OVERALL)

    if not view.search(args.department, args.course_code, include_galveston=args.galveston):
        print(f"Error: {view.error}")
        return None
    return view


def _cmd_search(args: argparse.Namespace, app: App) -> int:
    view = _run_search(args, app)
    if view is None:
        return 1

    print(f"{view.display_department} {view.display_course_code}")
    for line in view.summary():
        print(line)

    profs = view.sorted_professors
    sep = separator_index(profs, view.sort_by)
    for i, p in enumerate(profs, start=1):
        if i - 1 == sep:
            print("---")
        print(f"{i}) {professor_line(p)}")

    if args.rmp:
        if not view.rmp_module_available:
            print("RateMyProfessor data is not available on this server.")
        else:
            for row in rmp_rows(profs):
                print(" | ".join(f"{k}: {v}" for k, v in row.items()))

    return 0


def _cmd_sections(args: argparse.Namespace, app: App) -> int:
    view = _run_search(args, app)
    if view is None:
        return 1

    needle = args.professor.strip().lower()
    matches = [p for p in view.sorted_professors if needle in p.name.lower()]
    if not matches:
        print(f"No professor matching '{args.professor}' teaches {view.display_department} {view.display_course_code} next semester.")
        return 1

    prof = matches[0]
    sections = view.professor_sections(prof)
    if sections is None:
        print(f"Error: {view.error}")
        return 1

    selected = view.selected_professor or prof
    print(f"{selected.name}: {len(selected.courses)} section(s)")
    for course in selected.courses:
        seats = "Open" if course.is_available else "Closed"
        print(f"- Section {course.section} | CRN {course.crn} | {seats}")
        for line in view.course_meeting_info(course.section, course):
            print(f"    {line}")

    if sections and args.verbose:
        for s in sections:
            print(section_line(s))
            for line in meeting_lines(s):
                print(f"    {line}")
    return 0


def _cmd_phone(args: argparse.Namespace, app: App) -> int:
    view = SettingsView(app.client, app.store)

    if args.phone_command == "show":
        view.load()
        if view.phone_info:
            info = view.phone_info
            when = info.verified_at.strftime("%Y-%m-%d") if info.verified_at else "unknown date"
            print(f"Verified phone: {info.phone_number} ({carrier_name(info.carrier)}), verified on {when}")
        elif view.phone_number:
            print(f"Unverified phone: {view.phone_number} ({carrier_name(view.carrier)})")
        else:
            print("No phone number on file.")
        return 0

    if args.phone_command == "send":
        view.set_phone(args.number, args.carrier)
        if not view.send_verification_code():
            print(f"Error: {view.verification_error}")
            return 1
        print(f"Verification code sent to {view.gateway_address() or view.phone_number}.")
        print("Run: classalert phone confirm <CODE>")
        return 0

    if args.phone_command == "confirm":
        if not view.restore_pending():
            print("Send a verification code first: classalert phone send <NUMBER> <CARRIER>")
            return 1
        if not view.verify_code(args.code):
            print(f"Error: {view.verification_error}")
            return 1
        print(view.success_message)
        return 0

    return 2


def _cmd_status(args: argparse.Namespace, app: App) -> int:
    try:
        data: dict[str, Any] = app.client.status()
    except ApiError as e:
        print(f"Error: {e.message}")
        return 1
    print(f"Backend: {app.client.base_url}")
    for k, v in sorted(data.items()):
        print(f"{k}: {v}")
    return 0


# ---------------------------------------------------------------------------
# Parser & entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="classalert", description="Class seat alert client")
    parser.add_argument("--api-url", type=str, default=None, help="Backend base URL")
    parser.add_argument("--state", type=str, default=None, help="Path of the local state file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_login = sub.add_parser("login", help="Sign in with an email or an identity token")
    p_login.add_argument("email", nargs="?", type=str, help="Email address")
    p_login.add_argument("--token", type=str, default=None, help="Google identity token (JWT)")

    sub.add_parser("logout", help="Sign out")
    sub.add_parser("whoami", help="Show the current identity")

    p_alerts = sub.add_parser("alerts", help="List your alerts")
    p_alerts.add_argument("--all", action="store_true", help="List all alerts, not only yours")

    sub.add_parser("samples", help="Show some valid CRNs to try")

    p_add = sub.add_parser("add", help="Add an alert for a CRN")
    p_add.add_argument("crn", type=str, help="Course registration number")
    p_add.add_argument("--email", type=str, default=None, help="Email to use when not signed in")
    p_add.add_argument("--no-sms", action="store_true", help="Do not enable SMS for this alert")

    p_delete = sub.add_parser("delete", help="Delete an alert")
    p_delete.add_argument("crn", type=str, help="Course registration number")
    p_delete.add_argument("--term", type=str, default=config.DEFAULT_TERM, help="Term code (e.g. 202531)")
    p_delete.add_argument("--email", type=str, default=None, help="Alert email (default: signed-in user)")
    p_delete.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    p_toggle = sub.add_parser("toggle-sms", help="Turn SMS notifications on/off for an alert")
    p_toggle.add_argument("crn", type=str, help="Course registration number")
    p_toggle.add_argument("--term", type=str, default=config.DEFAULT_TERM, help="Term code (e.g. 202531)")

    for name, help_text in (("search", "Search professors for a course"), ("sections", "Show a professor's sections")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("department", type=str, help="Department (e.g. CSCE)")
        p.add_argument("course_code", type=str, help="Course number (e.g. 121)")
        p.add_argument("--galveston", action="store_true", help="Include Galveston campus sections")
        p.add_argument("--term", type=str, default=config.DEFAULT_TERM, help="Term code for new alerts")
        if name == "search":
            p.add_argument("--sort", choices=SORT_CHOICES, default=SORT_OVERALL, help="Sort order")
            p.add_argument("--rmp", action="store_true", help="Show RateMyProfessor details")
        else:
            p.add_argument("--professor", "-p", type=str, required=True, help="Part of the professor's name")

    p_phone = sub.add_parser("phone", help="Phone number for SMS notifications")
    phone_sub = p_phone.add_subparsers(dest="phone_command", required=True)
    phone_sub.add_parser("show", help="Show the phone on file")
    p_send = phone_sub.add_parser("send", help="Send a verification code")
    p_send.add_argument("number", type=str, help="10-digit phone number")
    p_send.add_argument("carrier", type=str, choices=sorted(config.CARRIER_BY_ID), help="Carrier")
    p_confirm = phone_sub.add_parser("confirm", help="Confirm the verification code")
    p_confirm.add_argument("code", type=str, help="5-character code")

    sub.add_parser("status", help="Show backend capabilities")
    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(level=level, format=config.LOG_FORMAT)


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    app = build_app(state_path=args.state, api_url=args.api_url)

    handlers = {
        "login": _cmd_login,
        "logout": _cmd_logout,
        "whoami": _cmd_whoami,
        "alerts": _cmd_alerts,
        "samples": _cmd_samples,
        "add": _cmd_add,
        "delete": _cmd_delete,
        "toggle-sms": _cmd_toggle_sms,
        "search": _cmd_search,
        "sections": _cmd_sections,
        "phone": _cmd_phone,
        "status": _cmd_status,
    }

    if args.command in handlers:
        raise SystemExit(handlers[args.command](args, app))

    if args.command == "interactive":
        from classalert.interactive import run_interactive

        run_interactive(app)
        raise SystemExit(0)

    raise SystemExit(2)
