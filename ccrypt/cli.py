from __future__ import annotations

import sys
import argparse
import getpass as _getpass
import warnings

from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from ccrypt import __version__
from ccrypt.core.config import CCryptConfig, PathConfig
from ccrypt.core.errors import (
    CCryptError,
    IndexOutOfRangeError,
    InvalidPasswordError,
    PasswordMismatchWarning,
    describe_error,
)
from ccrypt.core.file_ops.pipeline import CryptPipeline
from ccrypt.core.files.library import FileRecord, Library, SortKey, open_library
from ccrypt.core.logging import configure_root_logger
from ccrypt.utils.formatting import format_file_size


def _read_password(from_stdin: bool, confirm: bool = False) -> str:
    """Read a password from stdin or the terminal.

    Args:
        from_stdin: Read one line from standard input instead of prompting.
        confirm: Prompt twice and require both entries to match.

    Raises:
        InvalidPasswordError: If the password is empty or the entries differ.
    """
    if from_stdin:
        password = sys.stdin.readline().rstrip("\r\n")
    else:
        password = _getpass.getpass("Password: ")
        if confirm and password and _getpass.getpass("Confirm password: ") != password:
            raise InvalidPasswordError("Passwords do not match")
    if not password:
        raise InvalidPasswordError("Password must not be empty")
    return password


def _index_for(library: Library, encryption_id: int) -> int:
    index = library.find_by_id(encryption_id)
    if index is None:
        raise IndexOutOfRangeError(f"No entry with id {encryption_id}")
    return index


def _format_row(record: FileRecord) -> str:
    flag = "C" if record.is_compressed else "-"
    return (
        f"{record.encryption_id:>5d}  {flag}  {format_file_size(record.original_size):>12s}  "
        f"{record.original_name}  ->  {record.encrypted_name}"
    )


def _print_records(library: Library, indices: List[int]) -> None:
    if not indices:
        print("(no entries)")
        return
    print(f"{'ID':>5s}  C  {'SIZE':>12s}  NAME")
    for index in indices:
        print(_format_row(library[index]))


def cmd_encrypt(pipeline: CryptPipeline, source: str, *, compress: Optional[bool], password_stdin: bool) -> bool:
    """Encrypt ``source`` into the library and report the new entry."""
    password = _read_password(password_stdin, confirm=True)
    record = pipeline.encrypt(Path(source), password, compress=compress)
    try:
        pipeline.library.save()
    except CCryptError:
        # the record was never persisted; drop it and its artifact
        pipeline.library.remove(pipeline.library.find_by_id(record.encryption_id))
        pipeline.library.artifact_path(record).unlink(missing_ok=True)
        raise

    ratio = record.encrypted_size * 100.0 / record.original_size if record.original_size else 100.0
    print(f"Encrypted {record.original_name} as id {record.encryption_id} -> {record.encrypted_name}")
    print(
        f"  {format_file_size(record.original_size)} -> {format_file_size(record.encrypted_size)} "
        f"({ratio:.1f}%), compressed={'yes' if record.is_compressed else 'no'}"
    )
    return True


def cmd_decrypt(
    pipeline: CryptPipeline,
    encryption_id: Optional[int],
    *,
    artifact: Optional[str] = None,
    output: Optional[str] = None,
    force: bool = False,
    password_stdin: bool = False,
) -> bool:
    """Decrypt a library entry, or a standalone artifact when ``artifact`` is given.

    Returns:
        False when the password did not match or the checksum differs.
    """
    if artifact is not None:
        target = Path(output) if output else Path(artifact + "_dec")
        record = None
    else:
        record = pipeline.library[_index_for(pipeline.library, encryption_id)]
        target = Path(output) if output else Path.cwd() / record.original_name

    if target.exists() and not force:
        print(f"Error: {target} exists (use --force to overwrite)", file=sys.stderr)
        return False

    password = _read_password(password_stdin)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", PasswordMismatchWarning)
        if record is None:
            result = pipeline.decrypt_file(Path(artifact), password, target)
        else:
            result = pipeline.decrypt(record, password, target)

    print(f"Decrypted {format_file_size(result.size)} -> {result.output_path}")
    ok = True
    if not result.password_matched:
        print("Warning: " + describe_error(PasswordMismatchWarning()), file=sys.stderr)
        ok = False
    if result.checksum_matched is False:
        print("Warning: checksum mismatch, output differs from the original", file=sys.stderr)
        ok = False
    return ok


def cmd_list(library: Library, *, sort: Optional[str] = None) -> bool:
    if sort:
        library.sort(SortKey(sort))
    _print_records(library, list(range(library.count)))
    print(f"{library.count} entr{'y' if library.count == 1 else 'ies'}")
    return True


def cmd_info(library: Library, encryption_id: int) -> bool:
    record = library[_index_for(library, encryption_id)]
    artifact = library.artifact_path(record)
    rows = [
        ("ID", str(record.encryption_id)),
        ("Original name", record.original_name),
        ("Original path", record.original_path or "-"),
        ("Type", record.file_type or "-"),
        ("Original size", format_file_size(record.original_size)),
        ("Encrypted name", record.encrypted_name),
        ("Encrypted size", format_file_size(record.encrypted_size)),
        ("Compressed", "yes" if record.is_compressed else "no"),
        ("Method", record.method.name),
        ("Checksum", record.checksum or "-"),
        ("Artifact", f"{artifact}{'' if artifact.exists() else ' (missing)'}"),
    ]
    for label, value in rows:
        print(f"{label + ':':16s}{value}")
    return True


def cmd_search(library: Library, pattern: str, *, max_results: Optional[int] = None) -> bool:
    """Print entries whose original name contains ``pattern``."""
    matches = library.find_by_substring(pattern, max_results)
    _print_records(library, matches)
    return bool(matches)


def cmd_rename(library: Library, encryption_id: int, new_name: str) -> bool:
    updated = library.rename(_index_for(library, encryption_id), new_name)
    print(f"Renamed id {updated.encryption_id} -> {updated.encrypted_name}")
    return True


def cmd_delete(library: Library, encryption_id: int, *, secure: bool, passes: int) -> bool:
    removed = library.delete(_index_for(library, encryption_id), secure=secure, passes=passes)
    print(f"Deleted id {removed.encryption_id} ({removed.original_name})")
    return True


def _load_config(data_dir: Optional[str], verbose: bool) -> CCryptConfig:
    config = CCryptConfig.load()
    paths = config.paths
    if data_dir:
        root = Path(data_dir).expanduser().resolve()
        paths = PathConfig(data_dir=root, log_dir=root / "logs")
    settings = config.logging
    if verbose:
        settings = replace(settings, enable_console=True, level="DEBUG")
    return CCryptConfig(paths=paths, library=config.library, logging=settings, app=config.app)


def main(argv: List[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        prog="ccrypt",
        description="Password-based file encryption with a persistent library",
        epilog="The keystream cipher is not cryptographically secure.",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    ap.add_argument("--data-dir", help="Library and artifact directory (default: per-user data dir)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log to stderr at DEBUG level")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_encrypt = sub.add_parser("encrypt", help="Encrypt a file into the library")
    ap_encrypt.add_argument("source", help="File to encrypt")
    group = ap_encrypt.add_mutually_exclusive_group()
    group.add_argument("--compress", dest="compress", action="store_true", default=None, help="Try RLE before encrypting")
    group.add_argument("--no-compress", dest="compress", action="store_false", help="Store without compression")
    ap_encrypt.add_argument("--password-stdin", action="store_true", help="Read the password from standard input")
    ap_encrypt.set_defaults(compress=None)

    ap_decrypt = sub.add_parser("decrypt", help="Decrypt a library entry or an artifact file")
    target = ap_decrypt.add_mutually_exclusive_group(required=True)
    target.add_argument("id", nargs="?", type=int, help="Encryption id")
    target.add_argument("--file", dest="artifact", help="Standalone .ccrypt artifact to decrypt")
    ap_decrypt.add_argument("-o", "--output", help="Output path (default: original name in the current directory)")
    ap_decrypt.add_argument("--force", action="store_true", help="Overwrite an existing output file")
    ap_decrypt.add_argument("--password-stdin", action="store_true", help="Read the password from standard input")

    ap_list = sub.add_parser("list", help="List library entries")
    ap_list.add_argument("--sort", choices=[key.value for key in SortKey], help="Sort order")

    ap_info = sub.add_parser("info", help="Show one entry in detail")
    ap_info.add_argument("id", type=int, help="Encryption id")

    ap_search = sub.add_parser("search", help="Find entries by original-name substring")
    ap_search.add_argument("pattern", help="Case-sensitive substring")
    ap_search.add_argument("--max", dest="max_results", type=int, help="Stop after this many matches")

    ap_rename = sub.add_parser("rename", help="Rename an entry's artifact")
    ap_rename.add_argument("id", type=int, help="Encryption id")
    ap_rename.add_argument("new_name", help="New artifact file name")

    ap_delete = sub.add_parser("delete", help="Delete an entry and its artifact")
    ap_delete.add_argument("id", type=int, help="Encryption id")
    ap_delete.add_argument("--secure", action="store_true", default=None, help="Overwrite the artifact before removing it")
    ap_delete.add_argument("--passes", type=int, help="Overwrite passes for --secure")

    args = ap.parse_args(argv)
    try:
        config = _load_config(args.data_dir, args.verbose)
        config.ensure_directories()
        configure_root_logger(config.paths.log_dir, config.logging)

        library = open_library(
            config.paths.library_file,
            config.paths.artifact_dir,
            config.library.max_entries,
        )
        pipeline = CryptPipeline(library, config)

        if args.cmd == "encrypt":
            ok = cmd_encrypt(pipeline, args.source, compress=args.compress, password_stdin=args.password_stdin)
        elif args.cmd == "decrypt":
            ok = cmd_decrypt(
                pipeline,
                args.id,
                artifact=args.artifact,
                output=args.output,
                force=args.force,
                password_stdin=args.password_stdin,
            )
        elif args.cmd == "list":
            ok = cmd_list(library, sort=args.sort)
        elif args.cmd == "info":
            ok = cmd_info(library, args.id)
        elif args.cmd == "search":
            ok = cmd_search(library, args.pattern, max_results=args.max_results)
        elif args.cmd == "rename":
            ok = cmd_rename(library, args.id, args.new_name)
        elif args.cmd == "delete":
            secure = config.library.secure_delete if args.secure is None else args.secure
            passes = args.passes if args.passes is not None else config.library.secure_delete_passes
            ok = cmd_delete(library, args.id, secure=secure, passes=passes)
        else:
            raise RuntimeError("Unknown command")

        # flush sorts and other pending changes before exiting
        library.save()
    except (CCryptError, OSError, MemoryError) as e:
        print(f"Error: {describe_error(e)}", file=sys.stderr)
        return 2
    except ValueError as e:
        # Invalid configuration values from the environment
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
