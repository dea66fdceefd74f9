import contextlib
import errno
import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path


@contextlib.contextmanager
def scratch_file(path: "str | Path", content: str) -> Iterator[Path]:
    """
    Writes *content* to *path* for the duration of the with context. A file left behind at *path* by an earlier run
    is removed first, and the file is removed again when the context exits, no matter how it exits.

    :param path: The scratch file to create.
    :param content: The text to write into the scratch file.
    """

    path = Path(path)
    safe_rmpath(path)
    path.write_text(content)
    try:
        yield path
    finally:
        safe_rmpath(path)


def atomic_write_text(path: "str | Path", content: str) -> None:
    """
    Replaces the contents of *path* with *content* by writing a temporary file next to it and renaming it into place,
    so that readers never observe a partially written file.
    """

    path = Path(path)
    with tempfile.NamedTemporaryFile(
        "w",
        prefix=path.stem + "~",
        suffix="~" + path.suffix,
        dir=path.parent,
        delete=False,
    ) as fp:
        fp.write(content)
    try:
        if path.exists():
            shutil.copymode(path, fp.name)
        os.replace(fp.name, path)
    except BaseException:
        os.remove(fp.name)
        raise


def safe_rmpath(path: Path) -> None:
    """
    Removes the specified *path* from the file system. If it is a directory, :func:`shutil.rmtree` will be used. A
    path that does not exist is silently ignored, any other error is propagated.
    """

    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        try:
            path.unlink()
        except OSError as exc:
            if exc.errno != errno.ENOENT:
                raise
