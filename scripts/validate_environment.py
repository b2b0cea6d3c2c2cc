#!/usr/bin/env python3
"""Validate local fairshare environment readiness."""

from __future__ import annotations

import importlib
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from fairshare.domain.models import (
    BookingRecord,
    BookingRequest,
    GroupUsageAggregate,
    MemberShare,
    MemberUsage,
)
from fairshare.services.fairness_service import BookingFairnessService
from fairshare.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True

    # CHECK 1: Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    import_errors: list[str] = []
    for module_name in ("numpy", "pandas", "pydantic", "pytest"):
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3: Policy settings load and validate
    service = None
    try:
        service = BookingFairnessService(settings=get_settings())
        ok, line = _print_result(
            "Fairness policy",
            True,
            (
                f": warn>{service.weights.warn_threshold_pct:g}% "
                f"deny>{service.weights.deny_threshold_pct:g}%"
            ),
        )
    except ValueError as exc:
        ok, line = _print_result("Fairness policy", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    if service is not None:
        member = MemberUsage(
            user_id="check-member",
            ownership_percentage=40.0,
            total_bookings_count=1,
            total_hours_used=10.0,
        )
        group = GroupUsageAggregate(group_total_bookings=10, group_total_hours=100.0)

        # CHECK 4: Priority scoring reference case
        try:
            score = service.priority_score(member, group)
            if abs(score - 46.0) > 1e-9:
                raise RuntimeError(f"expected 46.0, got {score}")
            ok, line = _print_result("Priority scoring", True, f": {score:.2f}")
        except Exception as exc:
            ok, line = _print_result("Priority scoring", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5: Eligibility and conflict resolution
        try:
            decision = service.check_eligibility(member, group)
            if not decision.allowed:
                raise RuntimeError("reference member should be eligible")
            now = datetime.now(timezone.utc)
            winner = service.resolve_conflict(
                [
                    BookingRequest(user_id="unknown", created_at=now - timedelta(minutes=5)),
                    BookingRequest(user_id=member.user_id, created_at=now),
                ],
                [member],
                group,
            )
            if winner.user_id != member.user_id:
                raise RuntimeError("roster member should beat an unknown requester")
            ok, line = _print_result("Eligibility and conflict resolution", True)
        except Exception as exc:
            ok, line = _print_result("Eligibility and conflict resolution", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6: Usage aggregation and fairness report
        try:
            now = datetime.now(timezone.utc)
            report = service.analyze_group(
                [
                    MemberShare(user_id="a", ownership_percentage=50.0),
                    MemberShare(user_id="b", ownership_percentage=50.0),
                ],
                [
                    BookingRecord(
                        user_id=user_id,
                        start_time=now - timedelta(days=1),
                        end_time=now - timedelta(days=1) + timedelta(hours=4),
                    )
                    for user_id in ("a", "b")
                ],
                now=now,
            )
            if report.overall_fairness_score != 100:
                raise RuntimeError(f"expected 100, got {report.overall_fairness_score}")
            ok, line = _print_result(
                "Fairness report",
                True,
                f": {report.overall_fairness_score} ({report.fairness_level})",
            )
        except Exception as exc:
            ok, line = _print_result("Fairness report", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    print(SEPARATOR_LINE)
    print(" fairshare Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
