from __future__ import annotations

import argparse

from .auth_service import ensure_admin, reset_password
from .config import configure_logging, get_settings
from .db import engine, init_db
from .doctors import list_public_doctors
from .hospital import bed_availability
from .pharmacy import list_medicines
from .pregnancy import due_reminders, mark_due_reminders_sent
from .recovery import list_programs
from .seed import seed_base


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_base()
    print("Database initialized and seed completed.")


def cmd_list(args: argparse.Namespace) -> None:
    if args.entity == "medicines":
        for m in list_medicines():
            print(f"{m['id']} | {m['name']} | {m['category']} | {m['price']:.2f} | stock {m['stock']}")
    elif args.entity == "doctors":
        for d in list_public_doctors():
            print(f"{d['id']} | {d['doctor_name']} | {d['specialization']} | {d['availability_status']}")
    elif args.entity == "beds":
        for b in bed_availability():
            print(f"{b['id']} | {b['bed_type']} | {b['available_beds']}/{b['total_beds']} available")
    elif args.entity == "programs":
        for p in list_programs():
            print(f"{p['id']} | {p['surgery_type']} | {p['program_name']} ({p['total_days']} days)")


def cmd_create_admin(args: argparse.Namespace) -> None:
    settings = get_settings()
    uid = ensure_admin(args.username or settings.admin_username, args.password or settings.admin_password)
    print(f"Admin ready: {uid}")


def cmd_reset_user(args: argparse.Namespace) -> None:
    ok = reset_password(args.email, args.password)
    print("Password reset." if ok else "User not found.")


def cmd_db_info(args: argparse.Namespace) -> None:
    print("ENGINE URL:", engine.url)
    print("DB FILE   :", engine.url.database)


def cmd_reminders(args: argparse.Namespace) -> None:
    """
    Stands in for an external notification sender:
    - reads the pregnancy reminders that are due
    - prints them
    - optionally marks them as sent
    """
    due = mark_due_reminders_sent() if args.mark_sent else due_reminders()
    if not due:
        print("No reminders due.")
        return

    for r in due:
        print(f"[{r['id']}] {r['reminder_date']} | {r['reminder_title']}")

    if args.mark_sent:
        print("Reminders marked as sent.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="meduniverse", description="Medical Universe maintenance CLI")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Create tables and load the seed")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="List entities")
    p_list.add_argument("entity", choices=["medicines", "doctors", "beds", "programs"])
    p_list.set_defaults(func=cmd_list)

    p_admin = sub.add_parser("create-admin", help="Create the admin or reset its password")
    p_admin.add_argument("--username", default=None, help="Defaults to ADMIN_USERNAME")
    p_admin.add_argument("--password", default=None, help="Defaults to ADMIN_PASSWORD")
    p_admin.set_defaults(func=cmd_create_admin)

    p_reset = sub.add_parser("reset-user", help="Set a new password for a user")
    p_reset.add_argument("email")
    p_reset.add_argument("--password", required=True)
    p_reset.set_defaults(func=cmd_reset_user)

    p_info = sub.add_parser("db-info", help="Show the database in use")
    p_info.set_defaults(func=cmd_db_info)

    p_rem = sub.add_parser("reminders", help="Show due pregnancy reminders")
    p_rem.add_argument("--mark-sent", action="store_true", help="Mark them as sent after printing")
    p_rem.set_defaults(func=cmd_reminders)

    return p


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    init_db()  # tables must exist
    args.func(args)


if __name__ == "__main__":
    main()
