"""
Main CLI entry point for Affect Bridge

This module provides the command-line interface, the stdin control console
and the main run loop for the Affect Bridge system.
"""

import argparse
import logging
import signal
import sys
from threading import Event, Thread
from typing import List, Optional, TextIO

from ..core.config import *
from ..core.data_types import SessionSettings
from ..acquisition.sources import BandPowerSource, BrainFlowBandPowerSource, LSLBandPowerSource, FakeBandPowerSource
from ..communication.ui_sender import UISender
from ..communication.indicator import SerialIndicator
from ..session.controller import SessionController, SessionError
from ..utils.channel_finder import list_available_boards, map_board_channels

CONSOLE_HELP = """Commands:
  p              placement complete
  a              start placement assist
  b              start baseline (relax -> placement)
  r              reset session (re-run buffering)
  R              full restart
  d <index>      select device
  led <r> <g> <b> manual LED colour
  led clear      release manual LED colour
  q              quit"""


class ControlConsole:
    """
    Line-oriented control input

    Each line is one discrete command applied to the controller.
    """

    def __init__(self, controller: SessionController, shutdown_event: Event):
        self.controller = controller
        self.shutdown_event = shutdown_event

    def handle(self, line: str) -> bool:
        """
        Apply one command line

        Returns:
            bool: False if the line was not understood
        """
        parts = line.strip().split()
        if not parts:
            return True
        cmd, args = parts[0], parts[1:]

        try:
            if cmd == "p":
                self.controller.placement_complete()
            elif cmd == "a":
                self.controller.start_placement_assist()
            elif cmd == "b":
                self.controller.start_baseline()
            elif cmd == "r":
                self.controller.reset_session()
            elif cmd == "R":
                self.controller.full_restart()
            elif cmd == "d" and len(args) == 1:
                self.controller.select_device(int(args[0]))
            elif cmd == "led" and args == ["clear"]:
                self.controller.clear_manual_override()
            elif cmd == "led" and len(args) == 3:
                self.controller.set_manual_override([int(a) for a in args])
            elif cmd in ("q", "quit", "exit"):
                self.shutdown_event.set()
            elif cmd in ("h", "help", "?"):
                print(CONSOLE_HELP)
            else:
                logging.warning(f"Unknown command: {line.strip()!r} (type 'h' for help)")
                return False
        except (ValueError, SessionError) as e:
            logging.warning(f"Command {line.strip()!r} failed: {e}")
            return False
        return True

    def run(self, stream: TextIO = sys.stdin):
        for line in stream:
            self.handle(line)
            if self.shutdown_event.is_set():
                break
        self.shutdown_event.set()


def build_sources(args) -> List[BandPowerSource]:
    if args.fake:
        logging.info("Using synthetic EEG data")
        return [FakeBandPowerSource(rate=args.sampling_rate)]
    if args.source == "lsl":
        return [LSLBandPowerSource(stream_name=args.lsl_stream, rate=args.sampling_rate)]
    return [BrainFlowBandPowerSource(board_name=args.board, serial_port=args.serial_port,
                                     rate=args.sampling_rate)]


def samples_for(seconds: float, rate: float) -> int:
    return max(1, int(round(seconds * rate)))


def build_settings(args) -> SessionSettings:
    """Settings with every sample-count window derived from --sampling-rate"""
    rate = args.sampling_rate
    return SessionSettings(
        sampling_rate=rate,
        window_seconds=args.window_seconds,
        z_threshold=args.z_threshold,
        valence_window=samples_for(VALENCE_WINDOW_SECONDS, rate),
        valence_step=samples_for(VALENCE_STEP_SECONDS, rate),
        arousal_window=samples_for(AROUSAL_WINDOW_SECONDS, rate),
        arousal_step=samples_for(AROUSAL_STEP_SECONDS, rate),
    )


def run_session(controller: SessionController, device_idx: int = 0,
                input_stream: Optional[TextIO] = None) -> int:
    """
    Connect, run until shutdown, then disconnect

    This is the core loop: the controller does its work on stream and timer
    threads while this thread feeds it control commands.
    """
    shutdown_event = Event()

    def signal_handler(signum, frame):
        logging.info("Shutdown signal received")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not controller.select_device(device_idx):
        logging.error("Failed to connect to EEG source")
        return 1

    console = ControlConsole(controller, shutdown_event)
    console_thread = Thread(target=console.run, args=(input_stream or sys.stdin,),
                            name="control-console", daemon=True)
    console_thread.start()
    print(CONSOLE_HELP)

    try:
        logging.info("Session running. Press Ctrl+C or type 'q' to stop.")
        while not shutdown_event.is_set():
            shutdown_event.wait(0.5)
    finally:
        controller.disconnect()
        logging.info("Session stopped")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        description="Affect Bridge - Real-time mood from EEG band power",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run against an OpenBCI Cyton, LED on COM6
  python -m affect_bridge --board cyton --serial-port COM3 --led-port COM6

  # Run against a raw EEG LSL stream
  python -m affect_bridge --source lsl --lsl-stream EEG

  # Test with synthetic data
  python -m affect_bridge --fake

  # Show supported boards
  python -m affect_bridge --list-boards
        """
    )

    parser.add_argument("--list-boards", action="store_true",
                        help="List BrainFlow boards and channel mapping, then exit")

    # Data source options
    parser.add_argument("--source", choices=["brainflow", "lsl"], default="brainflow",
                        help="EEG data source (default: brainflow)")
    parser.add_argument("--fake", action="store_true",
                        help="Use synthetic EEG data for testing")
    parser.add_argument("--board", default=BOARD_NAME,
                        help=f"BrainFlow board name (default: {BOARD_NAME})")
    parser.add_argument("--serial-port", default=SERIAL_PORT,
                        help=f"Serial port for BrainFlow (default: {SERIAL_PORT})")
    parser.add_argument("--lsl-stream", default=LSL_STREAM_NAME,
                        help=f"LSL stream name (default: {LSL_STREAM_NAME})")

    # Processing parameters
    parser.add_argument("--sampling-rate", type=float, default=SAMPLING_RATE,
                        help=f"Band-power samples per second (default: {SAMPLING_RATE})")
    parser.add_argument("--window-seconds", type=float, default=SLIDING_WINDOW_SECONDS,
                        help=f"Baseline window length (default: {SLIDING_WINDOW_SECONDS})")
    parser.add_argument("--z-threshold", type=float, default=ARTIFACT_Z_THRESHOLD,
                        help=f"Artifact z-score threshold (default: {ARTIFACT_Z_THRESHOLD})")

    # Indicator options
    parser.add_argument("--led-port", default=LED_PORT,
                        help=f"LED controller serial port (default: {LED_PORT})")
    parser.add_argument("--led-baud", type=int, default=LED_BAUD_RATE,
                        help=f"LED controller baud rate (default: {LED_BAUD_RATE})")
    parser.add_argument("--no-led", action="store_true",
                        help="Run without the LED indicator")

    # Communication options
    parser.add_argument("--udp-host", default=UDP_HOST,
                        help=f"UI UDP host (default: {UDP_HOST})")
    parser.add_argument("--udp-port", type=int, default=UDP_PORT,
                        help=f"UI UDP port (default: {UDP_PORT})")

    # Logging
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose logging")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.list_boards:
        list_available_boards()
        map_board_channels(args.board)
        return 0

    print("=" * 60)
    print("Affect Bridge - Real-time Mood Detection")
    print("=" * 60)

    indicator = SerialIndicator(args.led_port, args.led_baud)
    if not args.no_led and not indicator.connect():
        logging.warning("LED indicator unavailable - continuing without it")

    ui_sender = UISender(args.udp_host, args.udp_port)

    try:
        settings = build_settings(args)
        controller = SessionController(build_sources(args), ui_sender, indicator, settings)
        return run_session(controller)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 0
    except ValueError as e:
        logging.error(f"Invalid configuration: {e}")
        return 1
    finally:
        ui_sender.close()
        indicator.close()


if __name__ == "__main__":
    sys.exit(main())
