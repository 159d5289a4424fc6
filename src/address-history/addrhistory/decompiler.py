import logging
import os
import subprocess
from typing import List

logger = logging.getLogger(__name__)


class Decompiler:
    """Runs the heimdall CLI on runtime bytecode; output is written beside other decompiled contracts."""

    def __init__(self, binary: str = "heimdall", output_dir: str = "decompiled") -> None:
        self.binary = binary
        self.output_dir = output_dir

    def output_path(self, address: str) -> str:
        return os.path.join(self.output_dir, address)

    def command(self, address: str, bytecode: bytes) -> List[str]:
        return [
            self.binary,
            "decompile",
            f"0x{bytecode.hex()}",
            "--output",
            self.output_path(address),
        ]

    def decompile(self, address: str, bytecode: bytes) -> str:
        """Decompile ``bytecode`` and return the directory the output goes to.

        Raises ``OSError`` when the decompiler cannot be started. A non-zero
        exit is only logged: the output is collected out of band.
        """
        path = self.output_path(address)
        os.makedirs(path, exist_ok=True)
        result = subprocess.run(
            self.command(address, bytecode),
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            logger.warning(
                "Decompiler exited with %s for address %s: %s",
                result.returncode,
                address,
                (result.stderr or "").strip()[:500],
            )
        return path
