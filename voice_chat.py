"""Talk to the TutorFlow realtime tutor from a terminal.

Commands typed at the prompt:
  /r   start recording from the microphone (interrupts the tutor)
  /s   stop recording and ask the tutor to answer
  /q   disconnect and exit
Anything else is sent as a text message.

Run the API server first (`uvicorn main:app`), then:
  python voice_chat.py --conversation demo

Tool calls are posted to `$TUTORFLOW_BASE_URL/api/functions`, which this
server does not provide; point TUTORFLOW_BASE_URL at the TutorFlow app that
serves it, or pass --no-functions to have the tutor told that tools are
unavailable.
"""
import argparse
import asyncio
import logging
import uuid

from dotenv import load_dotenv

from models.session_models import RealtimeMessage
from services.realtime.collaborators import HttpFunctionExecutor, HttpMessageRecorder, HttpTokenProvider
from services.realtime.errors import MicrophoneError, RealtimeError
from services.realtime.session_adapter import RealtimeSession
from services.realtime.settings import RealtimeSettings


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="TutorFlow realtime voice chat")
    parser.add_argument("--conversation", default=None, help="Conversation id for the message log")
    parser.add_argument("--verbose", action="store_true", help="Log realtime events")
    parser.add_argument("--no-functions", action="store_true", help="Run without a function endpoint")
    return parser.parse_args()


async def run(conversation_id: str, functions: bool = True) -> None:
    """Connect a realtime session and relay terminal commands to it."""
    settings = RealtimeSettings.from_env()
    recorder = HttpMessageRecorder(settings.base_url, conversation_id)

    async def on_message(message: RealtimeMessage) -> None:
        print(f"\n{message.role}: {message.content}")
        await recorder(message)

    def on_function_call(name: str, args: dict) -> None:
        print(f"\n[tool] {name}({args})")

    def on_error(error: RealtimeError) -> None:
        print(f"\n[error] {error}")

    session = RealtimeSession(
        settings,
        HttpTokenProvider(settings.base_url),
        HttpFunctionExecutor(settings.base_url, conversation_id=conversation_id) if functions else None,
        on_message=on_message,
        on_function_call=on_function_call,
        on_error=on_error,
    )

    try:
        await session.connect()
    except ConnectionError:
        return

    loop = asyncio.get_running_loop()
    print(f"Connected (conversation {conversation_id}). /r record, /s stop, /q quit.")
    try:
        while session.connected:
            line = (await loop.run_in_executor(None, input, "> ")).strip()
            if not line:
                continue
            if line == "/q":
                break
            try:
                if line == "/r":
                    await session.start_recording()
                    print("Recording... /s to send")
                elif line == "/s":
                    await session.stop_recording()
                else:
                    await session.send_message(line)
            except MicrophoneError:
                print("Microphone unavailable; text still works.")
            except RealtimeError as exc:
                print(f"[error] {exc}")
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await session.disconnect()


def main() -> None:
    load_dotenv()
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    asyncio.run(run(args.conversation or uuid.uuid4().hex, functions=not args.no_functions))


if __name__ == "__main__":
    main()
