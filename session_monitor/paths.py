"""
Path encoding utilities for Claude Code project directories.

Claude Code names each ~/.claude/projects/ subdirectory after the working
directory it was started in, replacing separator-like characters with '-':

    /Users/chris/my_project.app -> -Users-chris-my-project-app

WARNING: This encoding is LOSSY - decoding is impossible.
A directory name is only ever compared against another encoded value,
never turned back into a path. The authoritative working directory comes
from sessions-index.json (`projectPath`) when it exists.
"""

from __future__ import annotations

from pathlib import Path

__all__ = ['encode_path', 'path_fingerprint', 'fingerprint_matches']

# Characters folded into '-' by Claude Code. Underscore is included because
# some releases fold it and some do not; folding it on both sides keeps the
# comparison symmetric either way.
_SEPARATOR_CHARS = ('/', '\\', '.', ' ', '~', '_', ':')


def encode_path(path: Path | str) -> str:
    """
    Encode path for Claude's directory naming.

    This is the ONLY direction encoding can go. There is no decode function
    because the encoding is lossy (several chars -> 1 char).

    Examples:
        >>> encode_path("/Users/chris/project")
        '-Users-chris-project'

        >>> encode_path("/Users/chris/My Project.app")
        '-Users-chris-My-Project-app'
    """
    result = str(path) if isinstance(path, Path) else path
    for char in _SEPARATOR_CHARS:
        result = result.replace(char, '-')
    return result


def path_fingerprint(encoded_name: str) -> str:
    """
    Normalize an already-encoded directory name for comparison.

    Re-applies the separator fold so that names produced by releases with
    slightly different encodings compare equal to encode_path() output.
    """
    return encode_path(encoded_name).lower()


def fingerprint_matches(project_dir_name: str, cwd: Path) -> bool:
    """
    Weak evidence that a project directory belongs to a working directory.

    Only equality is meaningful: a '-' in an encoded name may have been a '/'
    or part of a directory name, so prefix tests would bind unrelated
    sibling projects (/a/foo vs /a/foo-bar).
    """
    return path_fingerprint(project_dir_name) == path_fingerprint(encode_path(cwd))
