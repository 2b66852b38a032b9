"""
Operator entry point: list the fleet and drive remediation operations.

    patchfleet list [--vulnerable-only]
    patchfleet upgrade <package>
    patchfleet commit <package>
    patchfleet checkout <package>
    patchfleet upgrade-all
"""
import argparse
import asyncio
import sys
from typing import List, Optional

from patchfleet.actions import build_actions
from patchfleet.discovery.scanner import discover_packages
from patchfleet.discovery.vulnerability_policy import VulnerabilityPolicy
from patchfleet.errors import PatchfleetError, PackageNotTrackedError
from patchfleet.models.models import FleetFilter, MessageKind, RemediationMessage
from patchfleet.remediation.fleet import FleetController
from patchfleet.remediation.machine import PackageRemediationMachine
from patchfleet.remediation.policy import available_actions, checkout_action
from patchfleet.utils.app_logging import logger

COMMAND_OPERATIONS = {
    "upgrade": "upgrade",
    "commit": "commit_and_push",
    "checkout": "checkout_default_branch",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="patchfleet",
        description="Track vulnerable React/Next.js packages and remediate them.",
    )
    parser.add_argument("--root", help="Directory to scan (default: PATCHFLEET_ROOT)")
    parser.add_argument("--policy", help="Vulnerability policy JSON (default: PATCHFLEET_POLICY_FILE)")
    parser.add_argument(
        "--backend",
        choices=["local", "temporal"],
        help="Where actions run (default: PATCHFLEET_ACTION_BACKEND)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="Show tracked packages")
    list_cmd.add_argument("--vulnerable-only", action="store_true")

    for name, help_text in (
        ("upgrade", "Upgrade the vulnerable dependencies of a package"),
        ("commit", "Commit and push a package's changes"),
        ("checkout", "Return a package to its default branch, or pull it"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("package", help="Package path or relative path")

    sub.add_parser("upgrade-all", help="Upgrade every vulnerable package concurrently")
    return parser


def resolve_machine(controller: FleetController, target: str) -> PackageRemediationMachine:
    """Find a machine by absolute path or by the relative path shown in listings."""
    if target in controller:
        return controller.machine(target)
    for machine in controller:
        if machine.package.relative_path == target.rstrip("/"):
            return machine
    raise PackageNotTrackedError(target)


def format_message(message: Optional[RemediationMessage]) -> str:
    if message is None:
        return "⏭️  skipped (operation already in progress)"
    icon = "✅" if message.kind is MessageKind.SUCCESS else "❌"
    return f"{icon} {message.text}"


def render_view(controller: FleetController) -> List[str]:
    view = controller.view()
    plural = "" if view.total == 1 else "s"
    heading = f"Found {view.total} package{plural}"
    if view.showing is not None:
        heading += f" (showing {view.showing})"
    status = f"{view.vulnerable_count} vulnerable" if view.vulnerable_count else "All secure"
    lines = [f"{heading} | {status}", "=" * 60]

    for package in view.packages:
        machine = controller.machine(package.path)
        marker = "⚠️ " if package.is_vulnerable else "✔️ "
        lines.append(f"{marker} {package.relative_path}")

        details = []
        if package.react_version:
            flag = " (vulnerable)" if package.is_react_vulnerable else ""
            details.append(f"react {package.react_version}{flag}")
        if package.next_version:
            flag = " (vulnerable)" if package.is_next_vulnerable else ""
            details.append(f"next {package.next_version}{flag}")
        if package.package_manager:
            details.append(package.package_manager)
        if package.git_branch:
            details.append(f"branch {package.git_branch}")
        if details:
            lines.append("    " + " | ".join(details))

        actions = available_actions(machine)
        if actions:
            checkout = checkout_action(package)
            labels = []
            for action in actions:
                if action == "checkout" and checkout is not None:
                    badge = f" {checkout.badge}" if checkout.badge else ""
                    labels.append(f"checkout [{checkout.label}{badge}]")
                else:
                    labels.append(action)
            lines.append("    actions: " + ", ".join(labels))
    return lines


async def load_fleet(args: argparse.Namespace) -> FleetController:
    policy = VulnerabilityPolicy.from_file(args.policy) if args.policy else None
    packages = await discover_packages(args.root, policy=policy)
    return FleetController(build_actions(args.backend), packages)


async def run(args: argparse.Namespace) -> int:
    controller = await load_fleet(args)

    if args.command == "list":
        if args.vulnerable_only:
            controller.set_filter(FleetFilter.VULNERABLE_ONLY)
        print("\n".join(render_view(controller)))
        return 0

    if args.command == "upgrade-all":
        results = await controller.run_all("upgrade", vulnerable_only=True)
        if not results:
            print("✅ No vulnerable packages to upgrade")
            return 0
        failed = False
        for path, message in results.items():
            print(f"{controller.machine(path).package.relative_path}: {format_message(message)}")
            failed = failed or (message is not None and message.kind is MessageKind.ERROR)
        return 1 if failed else 0

    machine = resolve_machine(controller, args.package)
    message = await getattr(machine, COMMAND_OPERATIONS[args.command])()
    print(f"{machine.package.relative_path}: {format_message(message)}")
    return 1 if message is not None and message.kind is MessageKind.ERROR else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except PatchfleetError as e:
        logger.error(str(e))
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
