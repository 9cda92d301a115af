#!/usr/bin/env python3
"""
Reconcile one project's estimate, quotes and expenses from a snapshot file.

Loads the reconciliation policy (packaged default or --config), reads the
snapshot through FileSnapshotSource, runs LineItemControlService and prints
the project summary followed by one line per estimate line item.

Usage:
    python3 scripts/reconcile_project.py snapshot.yaml --project-id P-100
    python3 scripts/reconcile_project.py snapshot.yaml --project-id P-100 --by-risk
    python3 scripts/reconcile_project.py snapshot.json --project-id P-100 --csv out.csv
"""

import argparse
import sys

from lineitem_config import get_active_policy
from lineitem_engines.control import ReconciliationResult
from lineitem_engines.export import to_export_rows, write_csv
from lineitem_kernel.exceptions import LineItemControlError
from lineitem_kernel.logging_config import configure_logging
from lineitem_services import FileSnapshotSource, LineItemControlService


def _print_summary(result: ReconciliationResult) -> None:
    s = result.summary
    print(f"  Contract value:        {s.total_contract_value}")
    print(f"  Estimated cost:        {s.total_estimated_cost}")
    print(f"  Quoted (w/ internal):  {s.total_quoted_with_internal}")
    print(f"  Allocated / actual:    {s.total_actual}")
    print(f"  Unallocated:           {s.total_unallocated}"
          f"  (unlinked {s.unlinked_expense_total}, orphaned {s.orphaned_expense_total})")
    print(f"  Quote variance:        {s.total_variance} ({s.estimate_to_quote_percent}%)")
    print(f"  Over / under budget:   {s.line_items_over_budget} / {s.line_items_under_budget}")
    print(f"  Completion:            {s.completion_percentage}%")
    print(f"  Allocation coverage:   {s.allocated_line_item_count}"
          f"/{s.external_line_item_count} ({s.allocation_percent}%)")


def _print_line_items(result: ReconciliationResult, by_risk: bool) -> None:
    items = result.ranked_by_risk() if by_risk else result.line_items
    for item in items:
        risk = result.risk_for(item.line_item_id)
        score = risk.score if risk is not None else 0
        print(
            f"  {item.line_item_id:<12} {item.category:<16} "
            f"est={item.estimated_cost:>12} quoted={item.quoted_cost:>12} "
            f"actual={item.actual_amount:>12} "
            f"quote={item.quote_status.value:<8} alloc={item.allocation_status.value:<10} "
            f"risk={score}"
        )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Reconcile a project's estimate, quotes and expenses",
    )
    parser.add_argument("snapshot", help="YAML or JSON snapshot file")
    parser.add_argument("--project-id", required=True, help="Project to reconcile")
    parser.add_argument("--config", default=None, help="Reconciliation policy YAML")
    parser.add_argument("--by-risk", action="store_true", help="Order line items by risk score")
    parser.add_argument("--csv", default=None, metavar="OUT", help="Write the CSV export to OUT")
    parser.add_argument(
        "--log-level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)

    try:
        policy = get_active_policy(args.config)
        service = LineItemControlService(FileSnapshotSource(args.snapshot), policy=policy)
        result = service.run(args.project_id)
    except LineItemControlError as e:
        print(f"  ERROR [{e.code}]: {e}", file=sys.stderr)
        return 1

    print()
    print(f"  Project {args.project_id} (policy {policy.version})")
    print()
    _print_summary(result)
    print()
    _print_line_items(result, args.by_risk)

    if args.csv:
        rows = to_export_rows(result, policy)
        with open(args.csv, "w", newline="") as f:
            count = write_csv(rows, f)
        print()
        print(f"  Wrote {count} rows to {args.csv}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
