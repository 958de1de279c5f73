"""
Hearth — Telegram Bot.

A thin transport over HouseholdService. The Telegram user id is the
authenticated identity and is passed explicitly into every service call.

Security: when ALLOWED_USER_IDS is set, everyone else is silently ignored.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import Update
from telegram.helpers import escape_markdown
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes

from hearth.config import settings
from hearth.core.errors import CORE_ERRORS, NotFound
from hearth.data.models import ChoreStatus, ChoreType

if TYPE_CHECKING:
    from hearth.core.household_service import HouseholdService
    from hearth.data.models import Chore, Household

logger = logging.getLogger(__name__)

_STATUS_ICON = {
    ChoreStatus.PENDING: "⏳",
    ChoreStatus.OVERDUE: "⚠️",
    ChoreStatus.COMPLETED: "✅",
}


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        allowed = settings.ALLOWED_USER_IDS
        if user is None or (allowed and user.id not in allowed):
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _service(context: ContextTypes.DEFAULT_TYPE) -> HouseholdService:
    return context.bot_data["service"]


def _user_id(update: Update) -> str:
    return str(update.effective_user.id)


def _format_due(due_by: datetime) -> str:
    return due_by.astimezone(ZoneInfo(settings.TIMEZONE)).strftime("%Y-%m-%d %H:%M")


def _format_chore(chore: Chore) -> str:
    icon = _STATUS_ICON[chore.status]
    return (
        f"{icon} `{chore.id[:8]}` {chore.type.value} → {chore.assigned_to} "
        f"(due {_format_due(chore.due_by)})"
    )


def _resolve_chore_id(chores: list[Chore], prefix: str) -> str | None:
    """Match a full id or a unique short prefix as shown by /chores."""
    matches = [c.id for c in chores if c.id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


async def _require_household(
    update: Update, context: ContextTypes.DEFAULT_TYPE,
) -> Household | None:
    household = _service(context).household_of(_user_id(update))
    if household is None:
        await update.message.reply_text(
            "You're not in a household yet. Use /newhousehold or /join <code>."
        )
    return household


async def _reply_error(update: Update, exc: Exception) -> None:
    logger.info("Request failed for user %s: %s", _user_id(update), exc)
    if getattr(exc, "retryable", False):
        await update.message.reply_text("The server is busy right now. Please try again.")
        return
    await update.message.reply_text(f"❌ {exc}")


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — register the member and say hello."""
    user = update.effective_user
    try:
        _service(context).register_member(_user_id(update), user.first_name or str(user.id))
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    await update.message.reply_text(
        "Welcome to *Hearth*!\n\n"
        "I keep your household's chores and shopping list in one place:\n"
        "• /newhousehold to start a household, /join <code> to join one\n"
        "• /chores to see chores, /done to complete one\n"
        "• /list to see the shopping list, /add to add to it\n\n"
        "Type /help for the full command list.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    types = ", ".join(t.value for t in ChoreType)
    await update.message.reply_text(
        "*Available commands:*\n"
        "/newhousehold — Create a household and get its join code\n"
        "/join <code> — Join a household\n"
        "/household — Show your household and its code\n"
        "/chores — List your household's chores\n"
        f"/addchore <type> <member_id> [hours] — Assign a chore ({types})\n"
        "/done <chore_id> — Mark a chore as done\n"
        "/stats — Who has done the most\n"
        "/list — Show the shopping list\n"
        "/add <item> — Add to the shopping list\n"
        "/remove <item_id> — Remove from the shopping list\n"
        "/help — Show this message",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_newhousehold(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /newhousehold — create a household owned by the caller."""
    try:
        household = _service(context).create_household(_user_id(update))
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    await update.message.reply_text(
        f"🏠 Household created! Share this code to invite others: `{household.code}`",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_join(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /join <code>."""
    if not context.args:
        await update.message.reply_text("Usage: /join <code>")
        return
    try:
        household = _service(context).join_household(context.args[0], _user_id(update))
    except NotFound:
        await update.message.reply_text("No household with that code. Check it and try again.")
        return
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    await update.message.reply_text(
        f"🎉 You joined household `{household.code}` "
        f"({len(household.members)} members).",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_household(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /household — show code and members."""
    try:
        household = await _require_household(update, context)
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    if household is None:
        return
    members = "\n".join(f"• `{m}`" for m in household.members)
    await update.message.reply_text(
        f"*Household code:* `{household.code}`\n*Members:*\n{members}",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_chores(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /chores — open chores, the caller's first."""
    try:
        household = await _require_household(update, context)
        if household is None:
            return
        mine, others = _service(context).partition_chores(household.id, _user_id(update))
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return

    if not mine and not others:
        await update.message.reply_text("No open chores. 🎉")
        return

    lines = ["*Your chores:*"]
    if mine:
        lines.extend(_format_chore(c) for c in mine)
    else:
        lines.append("Nothing assigned to you.")
    if others:
        lines.append("\n*Everyone else:*")
        lines.extend(_format_chore(c) for c in others)
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
async def cmd_addchore(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /addchore <type> <member_id> [hours]."""
    args = context.args or []
    if len(args) < 2:
        await update.message.reply_text("Usage: /addchore <type> <member_id> [hours]")
        return

    hours = settings.DEFAULT_DUE_HOURS
    if len(args) > 2:
        try:
            hours = int(args[2])
        except ValueError:
            await update.message.reply_text("Hours must be a whole number.")
            return

    try:
        household = await _require_household(update, context)
        if household is None:
            return
        due_by = datetime.now(timezone.utc) + timedelta(hours=hours)
        chore = _service(context).assign_chore(
            household.id, args[0].lower(), args[1], due_by,
        )
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    await update.message.reply_text(
        f"📝 Added: {_format_chore(chore)}", parse_mode="Markdown",
    )


@authorized_only
async def cmd_done(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /done <chore_id> — the id or the short prefix shown by /chores."""
    if not context.args:
        await update.message.reply_text("Usage: /done <chore_id>\nUse /chores to see IDs.")
        return

    service = _service(context)
    try:
        household = await _require_household(update, context)
        if household is None:
            return
        chore_id = _resolve_chore_id(service.list_chores(household.id), context.args[0])
        if chore_id is None:
            await update.message.reply_text("Unknown chore ID. Use /chores to see valid IDs.")
            return
        service.complete_chore(chore_id)
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    await update.message.reply_text(f"✅ Chore `{chore_id[:8]}` done!", parse_mode="Markdown")


@authorized_only
async def cmd_stats(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stats — leaderboard by completed chores."""
    try:
        household = await _require_household(update, context)
        if household is None:
            return
        stats = _service(context).compute_member_stats(household.id)
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return

    lines = ["*Leaderboard:*"]
    for rank, s in enumerate(stats, start=1):
        lines.append(
            f"{rank}. `{s.member_id}` — {s.completed_count} done, {s.active_count} active"
        )
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
async def cmd_list(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /list — show the shopping list."""
    try:
        household = await _require_household(update, context)
        if household is None:
            return
        items = _service(context).list_shopping_items(household.id)
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return

    if not items:
        await update.message.reply_text("🛒 Your list is empty.")
        return
    lines = [f"🛒 *Shopping list* ({len(items)} items):"]
    lines.extend(f"`{i.id[:8]}` {escape_markdown(i.name)}" for i in items)
    await update.message.reply_text("\n".join(lines), parse_mode="Markdown")


@authorized_only
async def cmd_add(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /add <item name>."""
    name = " ".join(context.args or [])
    try:
        household = await _require_household(update, context)
        if household is None:
            return
        item = _service(context).add_shopping_item(household.id, name)
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    await update.message.reply_text(f"Added '{item.name}' to the list.")


@authorized_only
async def cmd_remove(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /remove <item_id> — the id or the short prefix shown by /list."""
    if not context.args:
        await update.message.reply_text("Usage: /remove <item_id>\nUse /list to see IDs.")
        return
    service = _service(context)
    prefix = context.args[0]
    try:
        household = await _require_household(update, context)
        if household is None:
            return
        matches = [i.id for i in service.list_shopping_items(household.id) if i.id.startswith(prefix)]
        if len(matches) != 1:
            await update.message.reply_text("Unknown item ID. Use /list to see valid IDs.")
            return
        service.remove_shopping_item(household.id, matches[0])
    except CORE_ERRORS as exc:
        await _reply_error(update, exc)
        return
    await update.message.reply_text("Removed from the list.")


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(service: HouseholdService | None = None) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        service: Household service. Defaults to one built from settings.
    """
    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if service is None:
        from hearth.core.household_service import HouseholdService
        service = HouseholdService.from_settings()

    app.bot_data["service"] = service

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("newhousehold", cmd_newhousehold))
    app.add_handler(CommandHandler("join", cmd_join))
    app.add_handler(CommandHandler("household", cmd_household))
    app.add_handler(CommandHandler("chores", cmd_chores))
    app.add_handler(CommandHandler("addchore", cmd_addchore))
    app.add_handler(CommandHandler("done", cmd_done))
    app.add_handler(CommandHandler("stats", cmd_stats))
    app.add_handler(CommandHandler("list", cmd_list))
    app.add_handler(CommandHandler("add", cmd_add))
    app.add_handler(CommandHandler("remove", cmd_remove))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not settings.TELEGRAM_BOT_TOKEN or settings.TELEGRAM_BOT_TOKEN.startswith("your-"):
        print("ERROR: TELEGRAM_BOT_TOKEN is missing or not set in .env", file=sys.stderr)
        sys.exit(1)
    logger.info("Starting Hearth bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
