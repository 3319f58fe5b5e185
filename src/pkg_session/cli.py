from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from typing import Any, Sequence

from .config import settings_from_env
from .domain.exceptions import NotAuthenticatedError
from .domain.value_objects import Credentials
from .integrations.common.session_factory import SessionClient, create_session_client


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pkg-session",
        description="Inspect and manage the persisted API session",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log session decisions to stderr.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Show whether a session exists and how fresh it is.")

    for name in ("login", "register"):
        p = sub.add_parser(name, help=f"{name.capitalize()} with email and password.")
        p.add_argument("--email", "-e", required=True)
        p.add_argument(
            "--password",
            "-p",
            help="Password (prompted for when omitted).",
        )

    sub.add_parser("logout", help="Log out on the server and clear the local session.")
    sub.add_parser("refresh", help="Refresh the access token if it is close to expiry.")
    sub.add_parser("me", help="Print the signed-in user's profile.")

    return parser.parse_args(args=argv)


def _status(session: SessionClient) -> dict[str, Any]:
    coordinator = session.coordinator
    status = coordinator.status()
    pair = coordinator.store.get()
    if pair is None or status is None:
        return {"signed_in": False}

    remaining = coordinator.expires_in()
    return {
        "signed_in": True,
        "status": status.value,
        "expires_in": round(remaining) if remaining is not None else None,
    }


def _credentials(args: argparse.Namespace) -> Credentials:
    password = args.password or getpass.getpass("Password: ")
    return Credentials(args.email, password)


async def _run(args: argparse.Namespace) -> dict[str, Any]:
    settings = settings_from_env()

    async with create_session_client(settings) as session:
        if args.command == "status":
            return _status(session)

        if args.command == "login":
            await session.login(_credentials(args))
            return _status(session)

        if args.command == "register":
            await session.register(_credentials(args))
            return _status(session)

        if args.command == "logout":
            acknowledged = await session.logout()
            return {"server_acknowledged": acknowledged}

        if args.command == "refresh":
            before = session.coordinator.status()
            await session.ensure_fresh_token()
            summary = _status(session)
            summary["previous_status"] = before.value if before else None
            return summary

        if args.command == "me":
            profile = await session.me()
            return {
                "user": {
                    "id": profile.id,
                    "email": str(profile.email) if profile.email else None,
                    "first_name": profile.first_name,
                    "last_name": profile.last_name,
                    "image_url": profile.image_url,
                    "provider": profile.provider,
                }
            }

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )

    try:
        summary = asyncio.run(_run(args))
        json.dump({"ok": True, **summary}, sys.stdout, indent=2)
        sys.stdout.write("\n")
    except NotAuthenticatedError as exc:
        json.dump({"ok": False, "error": str(exc) or "Not signed in"}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        sys.exit(2)
    except Exception as exc:  # noqa: BLE001
        json.dump({"ok": False, "error": str(exc)}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        raise


if __name__ == "__main__":
    main()
