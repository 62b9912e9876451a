"""Main application entry point for Interview Listener."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from interview_listener.audio.capture import SystemAudioCapture
from interview_listener.classification import QuestionClassifier
from interview_listener.services.interview_monitor import InterviewMonitor
from interview_listener.transcription import (
    RealtimeTranscriptionManager,
    TranscriptionEventPublisher,
    create_provider,
)

from .config import InterviewListenerConfig

logger = logging.getLogger(__name__)

EVENT_TOPIC_PREFIX = "transcription"


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None,
                 provider: Optional[str] = None):
        self.config = InterviewListenerConfig(config_path)
        if provider:
            self.config.set('provider', provider)
        # Command line overrides config
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.should_exit = False

    def init(self, monitor_audio: Optional[bool] = None):
        logger.info("Initializing services...")

        provider = self.config.get_provider()
        api_key = self.config.get_api_key(provider)
        adapter = create_provider(provider, api_key, **self.config.get_provider_settings(provider))
        logger.info(f"Provider: {provider.value}, audio: {adapter.sample_rate}Hz, "
                    f"{adapter.buffer_size} samples/buffer")

        self.event_publisher = TranscriptionEventPublisher(EVENT_TOPIC_PREFIX)
        self.transcription_manager = RealtimeTranscriptionManager(
            api_key,
            provider=provider,
            adapter=adapter,
            on_event=self.event_publisher.get_callback(),
        )
        self.classifier = QuestionClassifier()
        self.interview_monitor = InterviewMonitor(self.classifier, EVENT_TOPIC_PREFIX)

        if monitor_audio is None:
            monitor_audio = bool(self.config.get('audio.monitor', False))
        self.audio_capture = SystemAudioCapture(self.transcription_manager, monitor=monitor_audio)

    async def run(self, duration: Optional[int]):
        try:
            if not await self.transcription_manager.create_session():
                raise RuntimeError("Failed to create transcription session")
            if not await self.transcription_manager.connect():
                raise RuntimeError("Failed to connect to realtime transcription endpoint")
            if not self.audio_capture.start_capturing():
                raise RuntimeError("Failed to start system audio capture")

            if duration:
                await asyncio.sleep(duration)
            else:
                while not self.should_exit and self.transcription_manager.is_active():
                    await asyncio.sleep(1)
        finally:
            await self.cleanup()

    async def cleanup(self):
        self.audio_capture.cleanup()
        await self.transcription_manager.close()
        self.interview_monitor.shutdown()

        stats = self.transcription_manager.get_stats()
        logger.info(f"Audio frames sent={stats['frames_sent']} dropped={stats['frames_dropped']} "
                    f"failed={stats['send_failures']}")
        for text, question_type in self.interview_monitor.get_questions():
            logger.info(f"Question [{question_type.value}]: {text}")


def setup_logging(config: InterviewListenerConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/interview_listener.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Interview Listener starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def main() -> None:
    """Main entry point for Interview Listener."""
    parser = argparse.ArgumentParser(
        description="Interview Listener - realtime interview transcription and question classification"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in defaults)"
    )

    parser.add_argument(
        "--provider",
        type=str,
        choices=["openai", "deepseek"],
        help="Realtime transcription provider (overrides config)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (overrides config)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Stop after this many seconds (default: run until the connection closes)"
    )

    parser.add_argument(
        "--monitor-audio",
        action="store_true",
        default=None,
        help="Play captured audio back through the output device"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Interview Listener v0.1.0"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, log_level=args.log_level, provider=args.provider)
        server.init(monitor_audio=args.monitor_audio)
        asyncio.run(server.run(args.duration))
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
