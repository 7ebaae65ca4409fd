# snaphost/cli/main.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from snaphost.app.config import load_config
from snaphost.app.controller import MachineController
from snaphost.core.errors import SnapHostError

from snaphost.cli.args import parse_args
from snaphost.cli.commands import (
    COMMANDS,
    NEEDS_HOMING,
    cmd_program_edit,
    configure_file_logging,
    configure_logging,
)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(verbose=args.verbose)
    if args.log_file:
        configure_file_logging(Path(args.log_file))

    try:
        if args.cmd == "program" and args.action == "edit":
            return cmd_program_edit(args)

        cfg = load_config(args.config)
        handler = COMMANDS.get(args.cmd)
        if handler is None:
            return 2

        with MachineController(cfg) as ctrl:
            if args.cmd in NEEDS_HOMING and not ctrl.homed():
                raise SnapHostError("Machine is not homed yet.", hint="Run: snaphost home")
            return handler(ctrl, args, cfg)

    except SnapHostError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
