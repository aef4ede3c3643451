"""
Application Initialization
==========================
This module constructs the MVC (Model-View-Controller) architecture and starts
the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Configures logging from the command line.
2. Instantiates the Viewer State (Model) and the Main Window (View).
3. Optionally opens an image passed on the command line.
"""
import argparse
import logging
import sys
from typing import Optional, Sequence

from depthparallax import __version__
from depthparallax.logging_config import setup_logging


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="depthparallax",
        description="Turn a photograph into an interactive depth-parallax scene.",
    )
    parser.add_argument("image", nargs="?", help="Image file or URL to open on start-up.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--log-file", default=None, help="Also write the log to this file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)

    # 1. Setup Logging (Console + Optional File)
    setup_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    # Qt and the scene stack are only needed once the arguments are valid
    from depthparallax.application import create_app
    from depthparallax.config import CAPTURE_DIR
    from depthparallax.controller.capture import CapturePipeline
    from depthparallax.model.state import ViewerState
    from depthparallax.view.main_window import MainWindow

    # 2. Create the Qt Application
    app = create_app()

    # 3. Initialize the Data Model
    state = ViewerState(capture_factory=lambda: CapturePipeline(output_dir=CAPTURE_DIR))

    # 4. Initialize the Main Window, passing the model
    window = MainWindow(state)
    window.show()

    if args.image:
        window.open_image(args.image)

    # 5. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
