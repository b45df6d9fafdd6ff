"""Command-line entry point for bridge operator tasks.

Without an injected chain client the commands run against
:class:`~bridge_attest.chain.DryRunChainClient` and print the execute
messages that would be broadcast.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from pydantic import ValidationError

from bridge_attest.chain import ChainClient, DryRunChainClient
from bridge_attest.config_loader import BridgeConfig, load_config
from bridge_attest.config_loader.parsing import default_party_names
from bridge_attest.errors import ConfigurationError
from bridge_attest.keys import FileKeyProvider, KeyProvider
from bridge_attest.logging_pipeline import configure_logging
from bridge_attest.quorum import QuorumPolicy, parse_quorum
from bridge_attest.schemas import TokenMetadata
from bridge_attest.submitter import BridgeOperator, OperationOutcome
from bridge_attest.verify import verify_attestation

LOGGER = logging.getLogger(__name__)


def _read_stdin() -> str | None:
    """Read JSON payload from stdin if available."""
    try:
        if sys.stdin and not sys.stdin.isatty():
            return sys.stdin.read()
    except (IOError, ValueError) as e:
        print(f"Error reading stdin: {e}", file=sys.stderr)
    return None


def _load_json(path: str | None, stdin_payload: str | None) -> dict[str, object]:
    """Load JSON data from file or stdin."""
    if path:
        text = Path(path).read_text(encoding="utf-8")
        return _parse_json_dict(text)
    if stdin_payload:
        return _parse_json_dict(stdin_payload)
    raise ValueError("No input provided. Use --input or pipe JSON via stdin.")


def _parse_json_dict(payload: str) -> dict[str, object]:
    data = json.loads(payload)
    if not isinstance(data, dict):
        raise ValueError("Input JSON must be an object at the top level.")
    return {str(key): value for key, value in data.items()}


def _add_token_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--ticker", help="Token ticker (defaults to the configured one).")
    parser.add_argument("--decimals", type=int, required=True, help="Token decimals.")
    parser.add_argument("--name", default="", help="Token display name.")
    parser.add_argument("--image-url", default="", help="Token image URL.")


def _add_receive_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--transaction-hash", "-t", required=True, help="Transaction hash on the source chain."
    )
    parser.add_argument("--amount", "-m", required=True, help="Amount as a plain decimal.")
    parser.add_argument(
        "--destination-address", "-d", required=True, help="Destination address."
    )
    parser.add_argument("--ticker", help="Token ticker (defaults to the configured one).")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bridge-attest",
        description="Sign and submit attested bridge operations.",
    )
    parser.add_argument("--config", "-c", help="Path to a JSON or YAML configuration file.")
    parser.add_argument("--keys-dir", help="Directory holding trusted party keys.")
    parser.add_argument("--contract-address", help="Bridge contract address.")
    parser.add_argument("--source-chain-id", help="Source chain ID.")
    parser.add_argument("--destination-chain-id", help="Destination chain ID.")
    parser.add_argument(
        "--quorum", help="Quorum policy: all, first, any or <k>-of-n."
    )
    parser.add_argument(
        "--only-one-signer",
        action="store_true",
        help="Shorthand for --quorum first.",
    )
    parser.add_argument(
        "--parties", help="Comma separated trusted party names, in signing order."
    )
    parser.add_argument(
        "--party-count",
        type=int,
        help="Use trusted-party-1 .. trusted-party-N as the party names.",
    )
    parser.add_argument(
        "--log-level", default="WARNING", help="Logging level (default: WARNING)."
    )
    parser.add_argument(
        "--log-format", choices=("plain", "json"), default="plain", help="Log format."
    )

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("add-signers", help="Register the trusted parties' public keys.")

    link = commands.add_parser("link-token", help="Attest and link a token.")
    _add_token_arguments(link)

    receive = commands.add_parser("receive", help="Attest and credit a transfer.")
    _add_receive_arguments(receive)

    sign = commands.add_parser("sign", help="Print an attestation without submitting.")
    sign_kinds = sign.add_subparsers(dest="kind", required=True)
    _add_token_arguments(sign_kinds.add_parser("link-token", help="Sign a link message."))
    _add_receive_arguments(sign_kinds.add_parser("receive", help="Sign a receive message."))

    verify = commands.add_parser(
        "verify", help="Verify an attestation produced by 'sign'."
    )
    verify.add_argument(
        "--input",
        "-i",
        help="Path to the JSON output of 'sign'. If omitted, reads from stdin.",
    )
    verify.add_argument(
        "--public-key",
        "-k",
        action="append",
        help="Registered base64 public key (repeatable). Defaults to the parties' keys.",
    )
    verify.add_argument(
        "--threshold", type=int, help="Signatures required (default: the quorum's)."
    )
    return parser


def resolve_config(args: argparse.Namespace) -> BridgeConfig:
    """Load configuration and apply command-line overrides on top."""

    if args.config and not Path(args.config).exists():
        raise ConfigurationError(f"configuration file {args.config!r} does not exist")
    config = load_config(args.config)

    overrides: dict[str, object] = {}
    for key in ("source_chain_id", "destination_chain_id", "contract_address"):
        value = getattr(args, key)
        if value:
            overrides[key] = value
    if args.keys_dir:
        overrides["keys_dir"] = Path(args.keys_dir)
    if args.quorum:
        overrides["quorum"] = parse_quorum(args.quorum)
    if args.only_one_signer:
        overrides["quorum"] = QuorumPolicy.first_party_only()
    if args.parties:
        names = tuple(name.strip() for name in args.parties.split(",") if name.strip())
        if not names:
            raise ConfigurationError("--parties must name at least one party")
        overrides["parties"] = names
    elif args.party_count is not None:
        overrides["parties"] = default_party_names(args.party_count)
    ticker = getattr(args, "ticker", None)
    if ticker:
        overrides["ticker"] = ticker
    return replace(config, **overrides) if overrides else config


def _outcome_json(outcome: OperationOutcome) -> dict[str, object]:
    return {
        "message": outcome.message.decode("utf-8"),
        "signatures": outcome.attestation.to_list(),
        "signers": list(outcome.attestation.signers),
        "transaction": outcome.result.to_dict(),
    }


def _token_from_args(args: argparse.Namespace, config: BridgeConfig) -> TokenMetadata:
    return TokenMetadata(
        ticker=config.require("ticker"),
        name=args.name,
        image_url=args.image_url,
        decimals=args.decimals,
    )


def _run(
    args: argparse.Namespace,
    client: ChainClient | None,
    key_provider: KeyProvider | None,
) -> tuple[dict[str, object], int]:
    config = resolve_config(args)
    keys = key_provider or FileKeyProvider(config.keys_dir)

    if args.command == "verify":
        return _verify(args, config, keys)

    if client is None:
        address = config.contract_address
        if not address:
            raise ConfigurationError(
                "a contract address is required (--contract-address or "
                "BRIDGE_CONTRACT_ADDRESS)"
            )
        client = DryRunChainClient(address)
    operator = BridgeOperator(config, keys, client)

    if args.command == "add-signers":
        results, signers = operator.add_signers()
        return {
            "transactions": [result.to_dict() for result in results],
            "signers": signers,
        }, 0
    if args.command == "link-token":
        return _outcome_json(operator.link_token(_token_from_args(args, config))), 0
    if args.command == "receive":
        outcome = operator.receive(
            args.transaction_hash, args.amount, args.destination_address
        )
        return _outcome_json(outcome), 0

    # sign: build and sign only
    if args.kind == "link-token":
        token = _token_from_args(args, config)
        message = operator.canonicalizer.link_token(
            ticker=token.ticker,
            decimals=token.decimals,
            contract_address=operator.contract_address,
        )
    else:
        message = operator.canonicalizer.receive(
            transaction_hash=args.transaction_hash,
            amount=args.amount,
            contract_address=operator.contract_address,
            destination_address=args.destination_address,
        )
    attestation = operator.signer.sign(message)
    return {
        "message": message.decode("utf-8"),
        "signatures": attestation.to_list(),
        "signers": list(attestation.signers),
    }, 0


def _verify(
    args: argparse.Namespace, config: BridgeConfig, keys: KeyProvider
) -> tuple[dict[str, object], int]:
    data = _load_json(args.input, None if args.input else _read_stdin())
    message = data.get("message")
    signatures = data.get("signatures")
    if not isinstance(message, str):
        raise ValueError("Input JSON must contain a 'message' string.")
    if not isinstance(signatures, list) or not all(isinstance(s, str) for s in signatures):
        raise ValueError("Input JSON must contain a 'signatures' list of strings.")

    public_keys = args.public_key or [keys.load_public_key(p) for p in config.parties]
    threshold = args.threshold
    if threshold is None:
        threshold = config.quorum.required_signers(len(config.parties))
    result = verify_attestation(
        message.encode("utf-8"), signatures, public_keys, threshold
    )
    return {
        "valid": result.ok,
        "matched_keys": list(result.matched_keys),
        "reason": result.reason,
    }, 0 if result.ok else 1


def main(
    argv: list[str] | None = None,
    *,
    client: ChainClient | None = None,
    key_provider: KeyProvider | None = None,
) -> int:
    """Run the command line and return the process exit code."""

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:  # pragma: no cover - controlled via tests
        exit_code = int(exc.code) if isinstance(exc.code, int) else 1
        return 0 if exit_code == 0 else 1

    level = logging.getLevelName(str(args.log_level).upper())
    configure_logging(
        level=level if isinstance(level, int) else logging.WARNING,
        json_output=args.log_format == "json",
    )

    try:
        output, exit_code = _run(args, client, key_provider)
    except ValidationError as exc:
        print(f"Invalid operation parameters: {exc}", file=sys.stderr)
        return 1
    except Exception as exc:
        LOGGER.debug("Command failed", exc_info=exc)
        print(str(exc), file=sys.stderr)
        return 1

    print(json.dumps(output, separators=(",", ":")))
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
