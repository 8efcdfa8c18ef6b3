from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

DEFAULT_THEME: Dict[str, Any] = {
    "$schema": "https://raw.githubusercontent.com/JanDeDobbeleer/oh-my-posh/main/themes/schema.json",
    "version": 2,
    "final_space": True,
    "blocks": [
        {
            "type": "prompt",
            "alignment": "left",
            "segments": [
                {
                    "type": "path",
                    "style": "plain",
                    "foreground": "cyan",
                    "template": "{{ .Path }} ",
                    "properties": {"style": "folder"},
                },
                {
                    "type": "git",
                    "style": "plain",
                    "foreground": "yellow",
                    "template": "{{ .HEAD }} ",
                },
                {
                    "type": "text",
                    "style": "plain",
                    "foreground": "green",
                    "template": "❯",
                },
            ],
        }
    ],
}


def _atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", dir=str(path.parent), delete=False, encoding="utf-8") as tmp:
        tmp.write(text)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)
    tmp_path.replace(path)


def ensure_theme(path: str | os.PathLike[str], theme: Dict[str, Any] | None = None) -> bool:
    """Write ``theme`` to ``path`` unless a file already exists there.

    Returns ``True`` when the file was created. Existing files are never
    overwritten.
    """

    target = Path(path).expanduser()
    if target.exists():
        return False
    payload = json.dumps(DEFAULT_THEME if theme is None else theme, indent=2, sort_keys=True)
    _atomic_write_text(target, payload + "\n")
    return True


def load_theme(path: str | os.PathLike[str]) -> Dict[str, Any]:
    with Path(path).expanduser().open("r", encoding="utf-8") as fh:
        return json.load(fh)


__all__ = ["DEFAULT_THEME", "ensure_theme", "load_theme"]
