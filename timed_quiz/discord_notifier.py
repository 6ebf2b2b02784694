"""
Session listener that reports quiz progress to a Discord channel.
"""
import logging
from typing import Optional

import discord

from .events import Notification, SessionListener
from .models import StoredResult
from .presentation import DEFAULT_CELEBRATION_PERCENT, format_time, is_celebration
from .scoring import score_percentage


SUCCESS_COLOR = 0x00ff00
ERROR_COLOR = 0xff0000
INFO_COLOR = 0x0099ff


def build_notification_embed(notification: Notification) -> discord.Embed:
    return discord.Embed(
        title=notification.title,
        description=notification.description,
        color=ERROR_COLOR if notification.destructive else SUCCESS_COLOR
    )


def build_results_embed(
    stored_result: StoredResult,
    celebration_percent: float = DEFAULT_CELEBRATION_PERCENT
) -> discord.Embed:
    """
    Create the embed summarizing a stored quiz result.

    Args:
        stored_result: Persisted attempt to summarize
        celebration_percent: Score percentage that earns a celebration

    Returns:
        Embed with score, percentage and time spent
    """
    result = stored_result.result
    percentage = score_percentage(result.score, result.total_questions)
    celebrate = is_celebration(result.score, result.total_questions, celebration_percent)

    embed = discord.Embed(
        title="🎉 Quiz Results" if celebrate else "📊 Quiz Results",
        description=f"You scored **{result.score}/{result.total_questions}**",
        color=SUCCESS_COLOR if celebrate else INFO_COLOR
    )
    embed.add_field(name="Percentage", value=f"{percentage:.0f}%", inline=True)
    embed.add_field(name="Time Spent", value=format_time(result.time_spent), inline=True)
    embed.set_footer(text=f"Result {stored_result.id} • {result.completed_at:%Y-%m-%d %H:%M}")
    return embed


class DiscordSessionListener(SessionListener):
    """
    Posts session notifications and navigation messages as embeds.

    Sending is best-effort: Discord API errors are logged and do not
    affect the session.
    """

    def __init__(
        self,
        channel: discord.abc.Messageable,
        celebration_percent: float = DEFAULT_CELEBRATION_PERCENT,
        fallback_hint: Optional[str] = None
    ):
        """
        Initialize the listener.

        Args:
            channel: Channel or user to post to
            celebration_percent: Score percentage that earns a celebration
            fallback_hint: Text pointing the user back to the quiz list
        """
        self.logger = logging.getLogger(__name__)
        self.channel = channel
        self.celebration_percent = celebration_percent
        self.fallback_hint = fallback_hint or "Pick another quiz from the list to continue."

    async def _send(self, embed: discord.Embed, operation: str) -> bool:
        try:
            await self.channel.send(embed=embed)
            return True
        except discord.Forbidden:
            self.logger.error(f"Missing permission to send {operation} message")
        except discord.HTTPException as e:
            self.logger.error(f"Failed to send {operation} message: {e}")
        return False

    async def notify(self, notification: Notification) -> None:
        await self._send(build_notification_embed(notification), "notification")

    async def redirect_to_fallback(self, quiz_id: Optional[str], reason: str) -> None:
        embed = discord.Embed(
            title="↩️ Back to quizzes",
            description=self.fallback_hint,
            color=INFO_COLOR
        )
        if quiz_id:
            embed.add_field(name="Quiz", value=quiz_id, inline=True)
        embed.add_field(name="Reason", value=reason.replace("_", " "), inline=True)
        await self._send(embed, "fallback")

    async def redirect_to_results(self, stored_result: StoredResult) -> None:
        await self._send(build_results_embed(stored_result, self.celebration_percent), "results")
