"""
Main entry point for the G-Code Replicator application.
Configures logging, sets up the main window, and starts the event loop.
"""

import argparse
import logging
import sys
from PySide6.QtWidgets import QApplication
from gui.main_window import ReplicatorWindow


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Replicate a G-code program across a grid.")
    parser.add_argument('file', nargs='?', help="G-code file to open")
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help="Logging verbosity (default: INFO)")
    return parser.parse_args(argv)


def main():
    """Initializes and runs the PySide6 application."""
    args = parse_args()
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    app = QApplication(sys.argv[:1])
    window = ReplicatorWindow(initial_file=args.file)
    window.show()
    sys.exit(app.exec())

if __name__ == '__main__':
    main()
