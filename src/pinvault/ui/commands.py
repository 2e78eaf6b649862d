import argparse
import sys

from pathlib import Path

from pinvault.crypto.cipher import SymmetricCipher
from pinvault.crypto.hash import generate_key_pair
from pinvault.storage.substrate import DirectoryStore
from pinvault.sync.pinata import PinataClient
from pinvault.utils.config import Settings
from pinvault.utils.core import FileManager
from pinvault.utils.exceptions import NotFoundError, ValidationError
from pinvault.utils.helper import ms_to_iso
from pinvault.utils.maintain import check_integrity, repair
from pinvault.utils.session import current_secret, login, logout


def open_store(args: argparse.Namespace) -> DirectoryStore:
    settings: Settings = args.settings
    return DirectoryStore(Path(args.home) if args.home else settings.home)


def open_manager(args: argparse.Namespace) -> FileManager:
    settings: Settings = args.settings
    store = open_store(args)
    secret = args.key or current_secret(store) or settings.secret
    if not secret:
        raise ValidationError("No secret available: pass --key, run `login`, or set PINVAULT_KEY")
    cipher = SymmetricCipher(secret, settings.kdf)
    remote = None
    if settings.remote_configured:
        remote = PinataClient(
            jwt=settings.pinata_jwt,
            api_key=settings.pinata_api_key,
            secret_key=settings.pinata_secret_key,
            api_url=settings.pinata_api_url,
            gateway_url=settings.pinata_gateway_url,
            timeout=settings.http_timeout,
        )
    return FileManager(store, cipher, remote)


def _report_sync(manager: FileManager) -> None:
    if manager.last_sync_error is not None:
        print(f"[!] Saved locally; remote mirror failed: {manager.last_sync_error}", file=sys.stderr)


def _read_text(value: str) -> str:
    return sys.stdin.read() if value == "-" else value


def cmd_keygen(args: argparse.Namespace) -> None:
    private, public = generate_key_pair()
    print("Keep the private key safe; it cannot be recovered.")
    print(f"private\t{private}")
    print(f"public\t{public}")


def cmd_login(args: argparse.Namespace) -> None:
    secret = login(open_store(args), args.secret)
    print(f"[+] Logged in as {SymmetricCipher.hash(secret)}")


def cmd_logout(args: argparse.Namespace) -> None:
    logout(open_store(args))
    print("[+] Logged out")


def cmd_new(args: argparse.Namespace) -> None:
    manager = open_manager(args)
    record = manager.create_file(args.title, _read_text(args.content), auto_suffix=args.auto_suffix)
    print(f"[+] Created '{record.title}' as id={record.id}")
    _report_sync(manager)


def cmd_ls(args: argparse.Namespace) -> None:
    records = open_manager(args).list_files()
    if not records:
        print("(empty)")
        return
    for r in records:
        print(f"{r.id}\t{r.title}\t{ms_to_iso(r.created_at)}\t{len(r.content)} chars")


def cmd_cat(args: argparse.Namespace) -> None:
    record = open_manager(args).get_file(args.id)
    if record is None:
        raise NotFoundError(f"No such id: {args.id}")
    sys.stdout.write(record.content)


def cmd_edit(args: argparse.Namespace) -> None:
    manager = open_manager(args)
    record = manager.update_content(args.id, _read_text(args.text))
    print(f"[+] Updated id={record.id} at {ms_to_iso(record.updated_at)}")
    _report_sync(manager)


def cmd_mv(args: argparse.Namespace) -> None:
    record = open_manager(args).rename_file(args.id, args.title)
    print(f"[+] Renamed id={record.id} -> {record.title}")


def cmd_rm(args: argparse.Namespace) -> None:
    manager = open_manager(args)
    manager.delete_file(args.id)
    print(f"[+] Removed id={args.id}")
    _report_sync(manager)


def cmd_sync(args: argparse.Namespace) -> None:
    cid = open_manager(args).sync()
    print(f"[+] Mirrored vault as {cid}")


def _require_mirror(manager: FileManager):
    if manager.mirror is None:
        raise ValidationError("No remote store configured (set PINATA_JWT)")
    return manager.mirror


def cmd_restore(args: argparse.Namespace) -> None:
    mirror = _require_mirror(open_manager(args))
    restored = mirror.restore(force=args.force)
    print(f"[+] Restored {len(restored)} files")


def cmd_check_key(args: argparse.Namespace) -> None:
    mirror = _require_mirror(open_manager(args))
    if mirror.identity_exists():
        print(f"[+] Remote bundle found for {mirror.identity}")
    else:
        print(f"[!] No remote bundle for {mirror.identity}")


def cmd_fsck(args: argparse.Namespace) -> None:
    manager = open_manager(args)
    report = repair(manager) if args.repair else check_integrity(manager)
    if report.ok:
        print("[+] Index and content are in lockstep")
        return
    for fid in report.orphan_content:
        print(f"orphan content\t{fid}")
    for fid in report.missing_content:
        print(f"missing content\t{fid}")
    if args.repair:
        print("[+] Repaired")
    else:
        sys.exit(1)
