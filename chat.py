"""Line-oriented chat client with a built-in bot conversation.

Users, conversations and messages live in memory. Signing in creates the
bot user and the user's conversation with the bot; every message added to that
conversation is answered through :func:`mimic.respond`.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, TextIO

import mimic
from config import Settings
from miner import PageFetcher

logger = logging.getLogger(__name__)

PROMPT = ">>"
BOT_CONVO = "Convo with Bot"

HELP = """\
Chat commands:
   exit      - exit the program.
   help      - this help message.
   sign-in <username>  - sign in as user <username>.
   sign-out  - sign out current user.
   current   - show current user, conversation, message.
User commands:
   u-add <name>  - add a new user.
   u-list-all    - list all users known to system.
Conversation commands:
   c-add <title>    - add a new conversation.
   c-list-all       - list all conversations known to system.
   c-select <index> - select conversation from list.
Message commands:
   m-add <body>     - add a new message to the current conversation.
   m-list-all       - list all messages in the current conversation.
   m-show <count>   - show next <count> messages."""


@dataclass
class User:
    id: int
    name: str


@dataclass
class Message:
    author: User
    body: str


@dataclass
class ChatConversation:
    id: int
    title: str
    owner: User
    with_bot: bool = False
    messages: List[Message] = field(default_factory=list)


class ChatClient:
    """Parse and execute chat commands, one line at a time."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        fetcher: Optional[PageFetcher] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.fetcher = fetcher
        self.out = out or sys.stdout
        self.alive = True

        self.users: Dict[str, User] = {}
        self.conversations: List[ChatConversation] = []
        self.current_user: Optional[User] = None
        self.current: Optional[ChatConversation] = None
        self._cursor = 0
        self._engines: Dict[int, mimic.Conversation] = {}

        self._commands: Dict[str, Callable[[str], None]] = {
            "exit": self._exit,
            "help": self._help,
            "sign-in": self._sign_in,
            "sign-out": self._sign_out,
            "current": self._show_current,
            "u-add": self._add_user,
            "u-list-all": self._list_users,
            "c-add": self._add_conversation,
            "c-list-all": self._list_conversations,
            "c-select": self._select_conversation,
            "m-add": self._add_message,
            "m-list-all": self._list_messages,
            "m-show": self._show_messages,
        }

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    def handle(self, line: str) -> bool:
        """Execute one command line; return ``False`` once the user exits."""
        token, _, rest = line.strip().partition(" ")
        if not token:
            return self.alive

        command = self._commands.get(token)
        if command is None:
            self._print(f"Command not recognized: {token}")
            self._print('Type "help" for help.')
            return self.alive

        try:
            command(rest.strip())
        except Exception:
            self._print("ERROR: Exception during command processing. Check log for details.")
            logger.exception("exception during command processing")
        return self.alive

    # commands

    def _exit(self, _: str) -> None:
        self.alive = False

    def _help(self, _: str) -> None:
        self._print(HELP)

    def _sign_in(self, name: str) -> None:
        if not name:
            self._print("ERROR: No user name supplied.")
            return
        user = self.users.get(name)
        if user is None or name == self.settings.bot_name:
            self._print("Error: sign in failed (invalid name?)")
            return
        self.current_user = user

        bot = self.users.get(self.settings.bot_name)
        if bot is None:
            self._new_user(self.settings.bot_name)
        if not any(c.with_bot and c.owner is user for c in self.conversations):
            self._new_conversation(BOT_CONVO, user, with_bot=True)

    def _sign_out(self, _: str) -> None:
        if self.current_user is None:
            self._print("ERROR: Not signed in.")
            return
        self.current_user = None

    def _show_current(self, _: str) -> None:
        if self.current_user is None and self.current is None:
            self._print("No current user or conversation.")
            return
        if self.current_user is not None:
            self._print("User:")
            self._print(f" {self.current_user.name} (id {self.current_user.id})")
        if self.current is not None:
            self._print("Conversation:")
            self._print(f" {self.current.title} (id {self.current.id})")
            count = len(self.current.messages)
            if count:
                self._print(f" conversation has {count} messages.")
            else:
                self._print(" -- no messages in conversation --")

    def _add_user(self, name: str) -> None:
        if not name:
            self._print("ERROR: Username not supplied.")
            return
        if name in self.users:
            self._print(f"ERROR: User {name} already exists.")
            return
        self._new_user(name)

    def _list_users(self, _: str) -> None:
        for user in self.users.values():
            self._print(f" {user.name} (id {user.id})")

    def _add_conversation(self, title: str) -> None:
        if self.current_user is None:
            self._print("ERROR: Not signed in.")
            return
        if not title:
            self._print("ERROR: Conversation title not supplied.")
            return
        self._new_conversation(title, self.current_user)

    def _list_conversations(self, _: str) -> None:
        for index, conversation in enumerate(self.conversations, start=1):
            self._print(f" {index}: {conversation.title} (owner {conversation.owner.name})")

    def _select_conversation(self, arg: str) -> None:
        self._print(f"Selection contains {len(self.conversations)} entries.")
        if not self.conversations:
            self._print("Nothing to select.")
            return
        try:
            index = int(arg)
        except ValueError:
            self._print("OK. Current Conversation is unchanged.")
            return
        if not 1 <= index <= len(self.conversations):
            self._print("OK. Current Conversation is unchanged.")
            return
        selected = self.conversations[index - 1]
        if selected is not self.current:
            self._cursor = 0
        self.current = selected
        self._print(f'OK. Conversation "{selected.title}" selected.')

    def _add_message(self, body: str) -> None:
        if self.current_user is None:
            self._print("ERROR: Not signed in.")
            return
        if self.current is None:
            self._print("ERROR: No conversation selected.")
            return
        if not body:
            self._print("ERROR: Message body not supplied.")
            return

        self.current.messages.append(Message(self.current_user, body))
        if self.current.with_bot:
            self._print(self.respond_as_bot(body))

    def _list_messages(self, _: str) -> None:
        if self.current is None:
            self._print("ERROR: No conversation selected.")
            return
        for message in self.current.messages:
            self._print(f" {message.author.name}: {message.body}")

    def _show_messages(self, arg: str) -> None:
        if self.current is None:
            self._print("ERROR: No conversation selected.")
            return
        count = int(arg) if arg.isdigit() else 1
        shown = self.current.messages[self._cursor : self._cursor + count]
        for message in shown:
            self._print(f" {message.author.name}: {message.body}")
        self._cursor += len(shown)

    # helpers

    def _new_user(self, name: str) -> User:
        user = User(id=len(self.users) + 1, name=name)
        self.users[name] = user
        return user

    def _new_conversation(self, title: str, owner: User, with_bot: bool = False) -> ChatConversation:
        conversation = ChatConversation(
            id=len(self.conversations) + 1, title=title, owner=owner, with_bot=with_bot
        )
        self.conversations.append(conversation)
        return conversation

    def respond_as_bot(self, body: str) -> str:
        """Answer *body* in the current bot conversation and store the reply."""
        conversation = self.current
        engine = self._engines.get(conversation.id)
        if engine is None:
            engine = mimic.Conversation(
                cur_user=self.current_user.name,
                settings=self.settings,
                fetcher=self.fetcher,
            )
            self._engines[conversation.id] = engine

        engine.message_count = len(conversation.messages)
        reply = mimic.respond(body, engine)
        conversation.messages.append(Message(self.users[self.settings.bot_name], reply))
        return reply


def main(argv: Optional[List[str]] = None) -> None:
    """Run the interactive chat client."""
    logging.basicConfig(level=os.environ.get("MIMIC_LOG_LEVEL", "WARNING").upper())
    client = ChatClient()

    # commands given on the command line run before the prompt
    for line in argv if argv is not None else sys.argv[1:]:
        client.handle(line)

    while client.alive:
        try:
            line = input(PROMPT)
        except EOFError:
            break
        client.handle(line)


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
