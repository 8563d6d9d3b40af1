from __future__ import annotations

import asyncio
import logging
import os
from collections import OrderedDict

from telegram import Update
from telegram.ext import Application, ContextTypes, MessageHandler, filters

import mimic
from config import Settings

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# one bot conversation per Telegram chat, least recently used dropped first
MAX_CONVERSATIONS = 1000
_CONVERSATIONS: OrderedDict[int, mimic.Conversation] = OrderedDict()


def _conversation_for(update: Update) -> mimic.Conversation:
    chat_id = update.effective_chat.id
    conversation = _CONVERSATIONS.get(chat_id)
    if conversation is None:
        user = update.effective_user
        name = (user.first_name if user else "") or "you"
        conversation = mimic.Conversation(cur_user=name, settings=Settings.from_env())
        _CONVERSATIONS[chat_id] = conversation
        while len(_CONVERSATIONS) > MAX_CONVERSATIONS:
            _CONVERSATIONS.popitem(last=False)
    else:
        _CONVERSATIONS.move_to_end(chat_id)
    return conversation


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle incoming messages by responding via ``mimic.respond``."""
    try:
        text = update.message.text or ""
        conversation = _conversation_for(update)
        conversation.message_count += 1
        # mining blocks on the network
        response = await asyncio.to_thread(mimic.respond, text, conversation)
        conversation.message_count += 1
        await update.message.reply_text(response)
    except Exception:  # pragma: no cover
        logger.exception("error handling message")


def main() -> None:
    """Run the Telegram bot."""
    token = os.environ.get("TELEGRAM_TOKEN")
    if not token:
        raise RuntimeError("TELEGRAM_TOKEN not set")

    application = Application.builder().token(token).build()
    application.add_handler(
        MessageHandler(filters.TEXT & filters.ChatType.PRIVATE & ~filters.COMMAND, handle_message)
    )

    logger.info("polling for messages")
    application.run_polling()


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
