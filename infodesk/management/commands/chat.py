import sys

from asgiref.sync import async_to_sync
from django.conf import settings
from django.core.management.base import BaseCommand

from infodesk.chat.controller import ChatSessionController
from infodesk.chat.reply import ReplyClient
from infodesk.chat.speech import resolve_platform_services

HELP_TEXT = "Commands: /resend  /speak (toggle auto-read)  /voice  /history  /quit"


class Command(BaseCommand):
    help = "Start an interactive hospital chat session in the terminal."
    stealth_options = ("stdin",)

    def add_arguments(self, parser):
        parser.add_argument("--url", help="Reply service endpoint (default: CHAT_API_URL)")
        parser.add_argument("--timeout", type=float, help="Reply timeout in seconds (default: CHAT_REPLY_TIMEOUT)")
        parser.add_argument("--no-auto-speak", action="store_true", help="Start with auto-read off")

    def handle(self, *args, **options):
        stdin = options.get("stdin") or sys.stdin
        client = ReplyClient(options.get("url"), timeout=options.get("timeout"))
        # The terminal has no speech platform; voice features run degraded.
        controller = ChatSessionController(
            client,
            resolve_platform_services(),
            auto_speak=settings.CHAT_AUTO_SPEAK and not options["no_auto_speak"],
        )
        self.stdout.write(self.style.MIGRATE_HEADING(f"Hospital Chatbot ({client.url})"))
        self.stdout.write(HELP_TEXT)
        shown = self._show(controller, 0)

        try:
            while True:
                self.stdout.write("You> ", ending="")
                self.stdout.flush()
                line = stdin.readline()
                if not line:
                    break
                line = line.rstrip("\n")
                command = line.strip()
                if command == "/quit":
                    break
                elif command == "/resend":
                    if not controller.can_resend:
                        self.stdout.write(self.style.WARNING("Nothing to resend yet."))
                    async_to_sync(controller.resend)()
                elif command == "/speak":
                    state = "ON" if controller.toggle_auto_speak() else "OFF"
                    self.stdout.write(f"Auto Read: {state}")
                elif command == "/voice":
                    if not controller.platform.can_recognize:
                        self.stdout.write(self.style.WARNING("Voice input is not available in this terminal."))
                    elif async_to_sync(controller.start_voice_capture)() is not None:
                        self.stdout.write(f"Heard: {controller.pending_input}")
                elif command == "/history":
                    self._show(controller, 0)
                else:
                    controller.set_input(line)
                    async_to_sync(controller.submit)()
                shown = self._show(controller, shown)
        finally:
            client.close()
        self.stdout.write(self.style.SUCCESS("Goodbye."))

    def _show(self, controller, start: int) -> int:
        """Print messages from position ``start`` on; return the new position."""
        for message in controller.transcript.since(start):
            if message.is_bot:
                self.stdout.write(self.style.HTTP_INFO(f"Bot: {message.text}"))
            elif start:
                # user lines were already echoed by the terminal
                continue
            else:
                self.stdout.write(f"You: {message.text}")
        return len(controller.transcript)
