"""Printing and writing scan results."""
import json
import os
import tempfile

from termcolor import colored

from .scanner import ScanResult


def ok_line(msg: str) -> str:
    return f"{colored('[+] ', 'green')}{msg}"


def info_line(msg: str) -> str:
    return f"{colored('[*] ', 'yellow')}{msg}"


def err_line(msg: str) -> str:
    return f"{colored('[-] ', 'red')}{msg}"


def format_text(result: ScanResult) -> str:
    lines = [f"Actions by {result.identity}:"]
    for action, last_seen in result.actions:
        lines.append(f"- {action} ({last_seen})")
    if result.secrets:
        lines.append("")
        lines.append("Potential Secrets Manager secrets:")
        for secret in result.secrets:
            lines.append(f"- {secret}")
    return "\n".join(lines) + "\n"


def to_json(result: ScanResult) -> dict:
    return {
        'identity': result.identity,
        'actions': [{'action': action, 'last_seen': last_seen} for action, last_seen in result.actions],
        'secrets': list(result.secrets),
        'stats': dict(result.stats),
    }


def print_summary(result: ScanResult):
    stats = result.stats
    print(info_line(f"Processed {stats.get('processed', 0)}/{stats.get('discovered', 0)} log files "
                f"({stats.get('failed', 0)} unreadable, {stats.get('skipped', 0)} skipped)"))

    if not result.actions:
        print(info_line(f"No successful actions found for {result.identity}"))
    else:
        print()
        print(ok_line(f"Actions by {result.identity}:"))
        for action, last_seen in result.actions:
            print(f"- {action} ({colored(last_seen, 'cyan')})")

    if result.secrets:
        print()
        print(ok_line("Potential Secrets Manager secrets:"))
        for secret in result.secrets:
            print(f"- {secret}")


def write_text(path: str, result: ScanResult):
    with open(path, 'w', encoding='utf-8') as f:
        f.write(format_text(result))


def atomic_write_json(path: str, payload: dict):
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.entrails-', suffix='.json')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except BaseException:
        os.unlink(tmp_path)
        raise
