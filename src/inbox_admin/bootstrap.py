"""Operator commands run outside the HTTP API.

Usage:
    python -m src.inbox_admin.bootstrap superadmin --email ops@example.com
    python -m src.inbox_admin.bootstrap cleanup-tokens --retention-days 30
    python -m src.inbox_admin.bootstrap migrate
"""

import argparse
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from src.inbox_admin.core.config import Settings, get_settings
from src.inbox_admin.core.db import Database, run_migrations_async
from src.inbox_admin.core.logging import get_logger, setup_logging
from src.inbox_admin.core.notifications import EmailSender
from src.inbox_admin.repositories import (
    EmailConfirmationRepository,
    PasswordResetRepository,
    TenantRepository,
    TenantUserRepository,
    UserInvitationRepository,
    UserRepository,
)
from src.inbox_admin.services import (
    IdentityService,
    SuperAdminService,
    TokenLifecycleManager,
)
from src.inbox_admin.services.superadmin_service import BootstrapResult

logger = get_logger(__name__)


def build_token_manager(
    session: AsyncSession, email_sender: EmailSender, settings: Settings
) -> TokenLifecycleManager:
    return TokenLifecycleManager(
        EmailConfirmationRepository(session),
        PasswordResetRepository(session),
        UserInvitationRepository(session),
        session,
        email_sender,
        settings,
    )


async def bootstrap_superadmin(
    database: Database,
    email: str,
    email_sender: EmailSender | None = None,
    settings: Settings | None = None,
) -> BootstrapResult:
    """Create or refresh the SuperAdmin for ``email`` and send the first-login link."""
    settings = settings or get_settings()
    email_sender = email_sender or EmailSender(settings)
    async with database.session() as session:
        service = SuperAdminService(
            IdentityService(UserRepository(session), session),
            build_token_manager(session, email_sender, settings),
            TenantRepository(session),
            TenantUserRepository(session),
            session,
            settings,
        )
        return await service.bootstrap(email)


async def cleanup_tokens(
    database: Database,
    retention_days: int | None = None,
    settings: Settings | None = None,
) -> dict[str, int]:
    """Delete tokens that expired or were used more than ``retention_days`` ago."""
    settings = settings or get_settings()
    async with database.session() as session:
        manager = build_token_manager(session, EmailSender(settings), settings)
        return await manager.cleanup_expired(retention_days)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Unified Inbox admin commands")
    subcommands = parser.add_subparsers(dest="command", required=True)

    superadmin = subcommands.add_parser("superadmin", help="Bootstrap a SuperAdmin account")
    superadmin.add_argument("--email", required=True, help="SuperAdmin email address")

    cleanup = subcommands.add_parser("cleanup-tokens", help="Delete long-dead single-use tokens")
    cleanup.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help="Keep tokens newer than this many days (default: TOKEN_CLEANUP_RETENTION_DAYS)",
    )

    subcommands.add_parser("migrate", help="Apply database migrations up to head")
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    if args.command == "migrate":
        await run_migrations_async()
        logger.info("Migrations applied")
        return

    settings = get_settings()
    database = Database.from_settings(settings)
    try:
        if args.command == "superadmin":
            result = await bootstrap_superadmin(database, args.email, settings=settings)
            logger.info(
                "SuperAdmin ready",
                member_id=str(result.membership.id),
                created=result.created,
                email_sent=result.first_login.email_sent,
            )
        elif args.command == "cleanup-tokens":
            deleted = await cleanup_tokens(database, args.retention_days, settings)
            logger.info("Token cleanup finished", **deleted)
    finally:
        await database.dispose()


def main(argv: list[str] | None = None) -> None:
    setup_logging(get_settings().debug)
    asyncio.run(run(parse_args(argv)))


if __name__ == "__main__":
    main()
