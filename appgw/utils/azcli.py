from __future__ import annotations

import json
import logging
import os
import re
import shutil
import subprocess
from typing import Any, List, Optional

from appgw.logs import LOGGER_NAME

log = logging.getLogger(LOGGER_NAME)

_NOT_FOUND = re.compile(
    r"\((ResourceGroupNotFound|ResourceNotFound|NotFound)\)|could not be found|was not found"
)


class CmdError(Exception):
    def __init__(self, message: str, returncode: int = 1, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


def run(cmd: List[str], cwd: Optional[str] = None) -> str:
    """Execute a command and return ONLY stdout text.

    Important: callers JSON-parse the return; stderr is kept on the raised
    CmdError and never mixed into it.
    """
    log.debug("Running: %s", " ".join(cmd))
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except FileNotFoundError as ex:
        raise CmdError(f"Executable not found: {cmd[0]}", returncode=127) from ex
    stdout, stderr = proc.communicate()
    out_text = (stdout or "").strip()
    err_text = (stderr or "").strip()
    if proc.returncode != 0:
        raise CmdError(
            f"Command failed ({proc.returncode}): {' '.join(cmd)}\nSTDERR:\n{err_text}",
            returncode=proc.returncode,
            stderr=err_text,
        )
    return out_text


def _resolve_az_exe() -> str:
    name = "az.cmd" if os.name == "nt" else "az"
    return shutil.which(name) or name


def az(args: List[str]) -> str:
    return run([_resolve_az_exe(), *args])


def az_json(args: List[str]) -> Any:
    out = az([*args, "-o", "json"])
    return json.loads(out) if out else None


def is_not_found(error: CmdError) -> bool:
    return bool(_NOT_FOUND.search(error.stderr or str(error)))
