import argparse

from pinvault.ui.commands import (
    cmd_cat, cmd_check_key, cmd_edit, cmd_fsck, cmd_keygen, cmd_login, cmd_logout,
    cmd_ls, cmd_mv, cmd_new, cmd_restore, cmd_rm, cmd_sync,
)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Encrypted file manager with an IPFS (Pinata) mirror")
    p.add_argument("--home", help="Local store directory (default: $PINVAULT_HOME or ~/.pinvault)")
    p.add_argument("--key", help="Master secret (default: logged-in session, then $PINVAULT_KEY)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_key = sub.add_parser("keygen", help="Generate a private key and its public identity")
    p_key.set_defaults(func=cmd_keygen)

    p_in = sub.add_parser("login", help="Remember a master secret for later commands")
    p_in.add_argument("secret", help="Master secret (private key)")
    p_in.set_defaults(func=cmd_login)

    p_out = sub.add_parser("logout", help="Forget the remembered secret")
    p_out.set_defaults(func=cmd_logout)

    p_new = sub.add_parser("new", help="Create a file")
    p_new.add_argument("title", help="File title (must be unique)")
    p_new.add_argument("--content", default="", help="Initial content, or - to read stdin")
    p_new.add_argument("--auto-suffix", action="store_true", help="Append ' (n)' if the title is taken")
    p_new.set_defaults(func=cmd_new)

    p_ls = sub.add_parser("ls", help="List files, newest first")
    p_ls.set_defaults(func=cmd_ls)

    p_cat = sub.add_parser("cat", help="Print a file's content")
    p_cat.add_argument("id", help="File id")
    p_cat.set_defaults(func=cmd_cat)

    p_edit = sub.add_parser("edit", help="Replace a file's content")
    p_edit.add_argument("id", help="File id")
    p_edit.add_argument("text", help="New content, or - to read stdin")
    p_edit.set_defaults(func=cmd_edit)

    p_mv = sub.add_parser("mv", help="Rename a file")
    p_mv.add_argument("id", help="File id")
    p_mv.add_argument("title", help="New title")
    p_mv.set_defaults(func=cmd_mv)

    p_rm = sub.add_parser("rm", help="Delete a file")
    p_rm.add_argument("id", help="File id")
    p_rm.set_defaults(func=cmd_rm)

    p_sync = sub.add_parser("sync", help="Upload the vault bundle to Pinata now")
    p_sync.set_defaults(func=cmd_sync)

    p_res = sub.add_parser("restore", help="Replace local files with the remote bundle")
    p_res.add_argument("--force", action="store_true", help="Overwrite a non-empty local vault")
    p_res.set_defaults(func=cmd_restore)

    p_chk = sub.add_parser("check-key", help="Check whether a remote bundle exists for this identity")
    p_chk.set_defaults(func=cmd_check_key)

    p_fsck = sub.add_parser("fsck", help="Check that index and content agree")
    p_fsck.add_argument("--repair", action="store_true", help="Drop orphans and dangling entries")
    p_fsck.set_defaults(func=cmd_fsck)

    return p
