#!/usr/bin/env python3
"""
pinvault: encrypted local file manager with a best-effort IPFS mirror.

Local layout (one file per key under PINVAULT_HOME):
    pinvault.index            # encrypted JSON: id -> {title, createdAt, updatedAt}
    pinvault.content.<id>     # encrypted JSON: {version, content}
    pinvault.remote_pointer   # CID of the latest bundle on Pinata
    pinvault.session          # remembered master secret (see `login`)

Every encrypted value is base64 of one envelope:
    magic "PVC1" | version | Argon2 t, m, p | salt(16) | nonce(12) | AES-256-GCM ct

Keys:
  - The master secret never encrypts anything directly. Index and content
    use HMAC-SHA256(master, "metadata" / "content") as passphrases.
  - Each passphrase is stretched per blob: Argon2id(SHA3-512(passphrase), salt).
  - The "public key" is SHA-256(master): an identity tag, not a keypair.

Remote mirror:
  After create/edit/delete the whole vault (still encrypted) is uploaded as
  one bundle named <identity>.json, and the previous bundle is unpinned.
  Mirror failures never undo or block the local change.

Commands:
  keygen                    Generate a private key and its identity
  login <secret> / logout   Remember or forget the master secret
  new <title>               Create a file (--content, --auto-suffix)
  ls                        List files, newest first
  cat <id>                  Print content
  edit <id> <text>          Replace content
  mv <id> <title>           Rename
  rm <id>                   Delete
  sync                      Mirror now
  restore                   Pull the remote bundle into an empty vault
  check-key                 Does a remote bundle exist for this identity?
  fsck                      Check index/content lockstep (--repair)

Note: a course-project design, not an audited product.
"""
from __future__ import annotations

import sys

from pinvault.ui.cli import build_parser
from pinvault.utils.config import load_settings
from pinvault.utils.exceptions import VaultError
from pinvault.utils.logging_config import setup_logging


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.settings = load_settings()
    setup_logging(args.settings.log_level)
    try:
        args.func(args)
    except VaultError as e:
        print(f"[!] {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
