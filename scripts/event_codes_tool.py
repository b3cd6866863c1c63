from __future__ import annotations

import argparse
import asyncio
import csv
from pathlib import Path
from uuid import UUID

from app.access.policy import ROLE_ADMIN
from app.db.repo.events_repo import EventsRepo
from app.db.repo.profiles_repo import UserRolesRepo
from app.db.repo.seasons_repo import SeasonsRepo
from app.db.session import SessionLocal

EXPORT_COLUMNS = (
    "event_id",
    "event_date",
    "title",
    "rarity",
    "redemption_code",
    "qr_code_data",
    "redemption_deadline",
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Event redemption code export and admin bootstrap tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="write a season's codes and QR payloads to CSV")
    export.add_argument("--season-id", type=UUID, required=True)
    export.add_argument("--output-csv", type=Path)

    grant = subparsers.add_parser("grant-admin", help="grant the admin role to a user")
    grant.add_argument("--user-id", type=UUID, required=True)
    return parser.parse_args(argv)


async def _export_season_codes(season_id: UUID, output_csv: Path) -> int:
    async with SessionLocal.begin() as session:
        season = await SeasonsRepo.get_by_id(session, season_id)
        if season is None:
            raise ValueError(f"season not found: {season_id}")
        events = await EventsRepo.list_for_season(session, season_id)

    output_csv.parent.mkdir(parents=True, exist_ok=True)
    with output_csv.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(EXPORT_COLUMNS)
        for event in events:
            writer.writerow(
                [
                    event.id,
                    event.event_date.isoformat(),
                    event.title,
                    event.rarity,
                    event.redemption_code,
                    event.qr_code_data or event.redemption_code,
                    event.redemption_deadline.isoformat(),
                ]
            )
    return len(events)


async def _grant_admin(user_id: UUID) -> bool:
    async with SessionLocal.begin() as session:
        return await UserRolesRepo.grant_once(session, user_id=user_id, role=ROLE_ADMIN)


async def _run(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.command == "export":
        output_csv = args.output_csv or Path(f"reports/event_codes_{args.season_id}.csv")
        exported = await _export_season_codes(args.season_id, output_csv)
        print(f"exported={exported} output={output_csv}")  # noqa: T201
        return 0

    granted = await _grant_admin(args.user_id)
    print(f"user_id={args.user_id} role={ROLE_ADMIN} granted={granted}")  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    return asyncio.run(_run(argv))


if __name__ == "__main__":
    raise SystemExit(main())
