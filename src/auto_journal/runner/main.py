"""
CLI main entry point.
"""

import argparse
import logging
import sys
from pathlib import Path

from ..ai import AIClassifierService
from ..classification import ClassificationPipeline, build_journal_entry
from ..config import Config, create_default_config, load_config
from ..exceptions import AutoJournalError, InvalidTransitionError
from ..review import JournalReview
from ..schemas import (
    Client,
    JournalStatus,
    LineItem,
    Rule,
    RuleType,
    TransactionFact,
    WorkflowState,
    WorkflowStep,
)
from ..services import CsvExportSink, ExportService, SummaryService
from ..state_store import StateStore, seed_master_data
from ..workflow import WorkflowStateMachine

logger = logging.getLogger(__name__)

SCOPE_LABELS = {"client": "顧客別", "industry": "業種別", "shared": "共通"}


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="auto-journal",
        description="Classify receipt transactions into journal entries and track client workflows",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init-config command
    init_parser = subparsers.add_parser("init-config", help="Write a default config file")
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file",
    )

    # status command
    subparsers.add_parser("status", help="Show pipeline status and statistics")

    # master command
    master_parser = subparsers.add_parser("master", help="Manage master data")
    master_sub = master_parser.add_subparsers(dest="master_command")
    master_sub.add_parser("seed", help="Insert default industries, account items and tax categories")
    master_sub.add_parser("list", help="List account items and tax categories")

    # clients command
    clients_parser = subparsers.add_parser("clients", help="Manage clients")
    clients_sub = clients_parser.add_subparsers(dest="clients_command")
    clients_sub.add_parser("list", help="List clients")
    client_add = clients_sub.add_parser("add", help="Add or update a client")
    client_add.add_argument("--id", required=True, help="Client ID")
    client_add.add_argument("--name", required=True, help="Client name")
    client_add.add_argument("--industry-id", help="Industry ID (e.g. ind-driver)")
    client_add.add_argument(
        "--custom-rules",
        action="store_true",
        help="Apply client-specific rules for this client",
    )

    # rules command
    rules_parser = subparsers.add_parser("rules", help="Manage classification rules")
    rules_sub = rules_parser.add_subparsers(dest="rules_command")
    rules_sub.add_parser("list", help="List rules by priority")
    rule_add = rules_sub.add_parser("add", help="Add a rule")
    rule_add.add_argument("--priority", type=int, required=True, help="Priority (lower first)")
    rule_add.add_argument(
        "--type",
        dest="rule_type",
        choices=["expense", "income"],
        default="expense",
        help="Rule type (default: expense)",
    )
    owner = rule_add.add_mutually_exclusive_group()
    owner.add_argument("--client-id", help="Client-specific rule")
    owner.add_argument("--industry-id", help="Industry-wide rule")
    rule_add.add_argument("--supplier", help="Supplier text contains (case-insensitive)")
    rule_add.add_argument("--pattern", help="Transaction pattern description (not matched)")
    rule_add.add_argument("--amount-min", type=int, help="Minimum amount (inclusive)")
    rule_add.add_argument("--amount-max", type=int, help="Maximum amount (inclusive)")
    rule_add.add_argument("--account-item", required=True, help="Account item ID")
    rule_add.add_argument("--tax-category", required=True, help="Tax category ID")
    rule_deactivate = rules_sub.add_parser("deactivate", help="Deactivate a rule")
    rule_deactivate.add_argument("rule_id", help="Rule ID")

    # classify command
    classify_parser = subparsers.add_parser("classify", help="Classify a single transaction")
    classify_parser.add_argument("--client-id", required=True, help="Client ID")
    classify_parser.add_argument("--amount", type=int, required=True, help="Amount in yen")
    classify_parser.add_argument("--supplier", help="Supplier name as printed")
    classify_parser.add_argument("--tax-amount", type=int, help="Consumption tax amount in yen")
    classify_parser.add_argument("--date", help="Transaction date (YYYY-MM-DD)")
    classify_parser.add_argument(
        "--item",
        action="append",
        default=[],
        help="Purchased item name (repeatable)",
    )
    classify_parser.add_argument(
        "--income",
        action="store_true",
        help="Classify as income instead of expense",
    )
    classify_parser.add_argument(
        "--save",
        action="store_true",
        help="Store the result as a pending journal entry",
    )

    # workflow command
    workflow_parser = subparsers.add_parser("workflow", help="Manage client workflows")
    workflow_sub = workflow_parser.add_subparsers(dest="workflow_command")
    wf_start = workflow_sub.add_parser("start", help="Start a workflow for a client")
    wf_start.add_argument("--client-id", required=True, help="Client ID")
    workflow_sub.add_parser("list", help="List workflows in progress")
    for name, help_text in (
        ("show", "Show workflow progress"),
        ("advance", "Complete the current step and move to the next"),
        ("back", "Move back one step"),
        ("suspend", "Save and leave the workflow"),
        ("complete", "Finish and remove the workflow"),
    ):
        sub = workflow_sub.add_parser(name, help=help_text)
        sub.add_argument("workflow_id", help="Workflow ID")
    for name, help_text in (
        ("goto", "Jump to a step"),
        ("mark", "Mark a step complete"),
    ):
        sub = workflow_sub.add_parser(name, help=help_text)
        sub.add_argument("workflow_id", help="Workflow ID")
        sub.add_argument("step", type=int, help="Step number (1-8)")

    # entries command
    entries_parser = subparsers.add_parser("entries", help="Review journal entries")
    entries_sub = entries_parser.add_subparsers(dest="entries_command")
    entries_list = entries_sub.add_parser("list", help="List journal entries")
    entries_list.add_argument("--client-id", help="Filter by client")
    entries_list.add_argument(
        "--status",
        choices=[s.value for s in JournalStatus],
        help="Filter by status",
    )
    for name, help_text in (("approve", "Approve an entry"), ("reject", "Reject (delete) an entry")):
        sub = entries_sub.add_parser(name, help=help_text)
        sub.add_argument("entry_id", help="Journal entry ID")

    # summary command
    summary_parser = subparsers.add_parser("summary", help="Show a client's journal totals")
    summary_parser.add_argument("--client-id", required=True, help="Client ID")

    # export command
    export_parser = subparsers.add_parser("export", help="Export approved entries to CSV")
    export_parser.add_argument("--client-id", required=True, help="Client ID")
    export_parser.add_argument("--output", type=Path, required=True, help="CSV output path")
    export_parser.add_argument("--workflow-id", help="Workflow to flag as exported")

    return parser


def cmd_init_config(config_path: Path, force: bool) -> int:
    """Write a default configuration file."""
    if config_path.exists() and not force:
        print(f"❌ {config_path} already exists (use --force to overwrite)")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def cmd_status(config: Config) -> int:
    """Show pipeline status."""
    store = StateStore(config.state_db_path)
    stats = store.get_stats()

    print("\n📊 Pipeline Status")
    print("=" * 40)
    print(f"  Clients:                {stats['clients']}")
    print(f"  Active rules:           {stats['rules_active']}")
    print(f"  Documents total:        {stats['documents_total']}")
    print(f"  Documents OCR failed:   {stats['documents_failed']}")
    print(f"  Documents excluded:     {stats['documents_excluded']}")
    print(f"  Entries pending:        {stats['entries_pending']}")
    print(f"  Entries approved:       {stats['entries_approved']}")
    print(f"  Entries exported:       {stats['entries_exported']}")
    print(f"  Workflows in progress:  {stats['workflows_active']}")
    print(f"  AI classifier:          {'enabled' if config.llm.enabled else 'disabled'}")
    print()

    return 0


def cmd_master(config: Config, subcommand: str | None) -> int:
    """Seed or list master data."""
    store = StateStore(config.state_db_path)

    if subcommand == "seed":
        counts = seed_master_data(store)
        print(
            f"✓ Seeded {counts['industries']} industries, {counts['account_items']} account items, "
            f"{counts['tax_categories']} tax categories"
        )
        return 0

    if subcommand == "list":
        print("\n📒 Account items")
        for item in store.list_account_items():
            print(f"  [{item.id}] {item.code} {item.name}")
        print("\n🧾 Tax categories")
        for tax_category in store.list_tax_categories():
            print(f"  [{tax_category.id}] {tax_category.name}")
        print("\n🏷  Industries")
        for industry in store.list_industries():
            print(f"  [{industry.id}] {industry.name}")
        return 0

    print("❌ Specify a master subcommand (seed, list)")
    return 1


def cmd_clients(config: Config, args: argparse.Namespace) -> int:
    """Add or list clients."""
    store = StateStore(config.state_db_path)

    if args.clients_command == "add":
        if args.industry_id and store.get_industry(args.industry_id) is None:
            print(f"❌ Unknown industry: {args.industry_id}")
            return 1
        store.upsert_client(
            Client(
                id=args.id,
                name=args.name,
                industry_id=args.industry_id,
                use_custom_rules=args.custom_rules,
            )
        )
        print(f"✓ Saved client {args.id} ({args.name})")
        return 0

    if args.clients_command == "list":
        clients = store.list_clients()
        if not clients:
            print("No clients")
            return 0
        for client in clients:
            custom = "custom rules" if client.use_custom_rules else "standard rules"
            print(f"  [{client.id}] {client.name} (industry: {client.industry_id or '-'}, {custom})")
        return 0

    print("❌ Specify a clients subcommand (add, list)")
    return 1


def cmd_rules(config: Config, args: argparse.Namespace) -> int:
    """List, add or deactivate rules."""
    store = StateStore(config.state_db_path)

    if args.rules_command == "list":
        rules = store.list_rules()
        if not rules:
            print("No rules")
            return 0
        for rule in rules:
            marker = "✓" if rule.is_active else "✗"
            conditions = ", ".join(p.describe() for p in rule.predicates)
            print(
                f"  {marker} [{rule.id}] #{rule.priority} {SCOPE_LABELS[rule.scope.value]} "
                f"{rule.rule_type.value}: {conditions} → {rule.account_item_id} / "
                f"{rule.tax_category_id}"
            )
        return 0

    if args.rules_command == "add":
        try:
            rule = store.create_rule(
                Rule(
                    id="",
                    priority=args.priority,
                    rule_type=args.rule_type,
                    client_id=args.client_id,
                    industry_id=args.industry_id,
                    supplier_pattern=args.supplier,
                    transaction_pattern=args.pattern,
                    amount_min=args.amount_min,
                    amount_max=args.amount_max,
                    account_item_id=args.account_item,
                    tax_category_id=args.tax_category,
                )
            )
        except AutoJournalError as e:
            print(f"❌ {e}")
            return 1
        print(f"✓ Created {SCOPE_LABELS[rule.scope.value]} rule {rule.id}")
        return 0

    if args.rules_command == "deactivate":
        try:
            store.deactivate_rule(args.rule_id)
        except AutoJournalError as e:
            print(f"❌ {e}")
            return 1
        print(f"✓ Deactivated rule {args.rule_id}")
        return 0

    print("❌ Specify a rules subcommand (list, add, deactivate)")
    return 1


def cmd_classify(config: Config, args: argparse.Namespace) -> int:
    """Classify one transaction given on the command line."""
    store = StateStore(config.state_db_path)

    client = store.get_client(args.client_id)
    if client is None:
        print(f"❌ Unknown client: {args.client_id}")
        return 1
    industry = store.get_industry(client.industry_id) if client.industry_id else None

    transaction = TransactionFact(
        amount=args.amount,
        date=args.date,
        supplier_text=args.supplier,
        tax_amount=args.tax_amount,
        line_items=tuple(LineItem(name=name) for name in args.item) if args.item else None,
        rule_type=RuleType.INCOME if args.income else RuleType.EXPENSE,
    )

    ai = AIClassifierService(config) if config.llm.enabled else None
    try:
        pipeline = ClassificationPipeline(store, config, ai_classifier=ai)
        result = pipeline.classify(transaction, client.context(industry))
    except AutoJournalError as e:
        print(f"❌ {e}")
        return 1
    finally:
        if ai is not None:
            ai.close()

    account_item = store.get_account_item(result.account_item_id) if result.account_item_id else None
    tax_category = (
        store.get_tax_category(result.tax_category_id) if result.tax_category_id else None
    )

    print("\n🧮 Classification")
    print(f"  Account item:  {account_item.name if account_item else result.account_item_id}")
    print(f"  Tax category:  {tax_category.name if tax_category else result.tax_category_id}")
    print(f"  Category:      {result.category.label}")
    print(f"  Confidence:    {result.confidence:.0%}")
    print(f"  Provenance:    {result.provenance.value}{' (fallback)' if result.is_fallback else ''}")
    if result.matched_rule_id:
        print(f"  Rule:          {result.matched_rule_id}")
    if result.rationale:
        print(f"  Rationale:     {result.rationale}")

    if args.save:
        entry = store.save_journal_entry(build_journal_entry(transaction, result, client.id))
        print(f"\n✓ Saved pending entry {entry.id}")

    return 0


def _print_workflow(state: WorkflowState) -> None:
    print(f"\n🗂  Workflow {state.id} - {state.client_name} ({state.client_id})")
    for step in WorkflowStep:
        if step == state.current_step:
            marker = "▶"
        elif state.is_step_complete(step):
            marker = "✓"
        else:
            marker = " "
        print(f"  {marker} {step.value}. {step.label}")
    print(f"  Last updated: {state.last_updated}")


def cmd_workflow(config: Config, args: argparse.Namespace) -> int:
    """Drive client workflows."""
    store = StateStore(config.state_db_path)
    machine = WorkflowStateMachine(store)
    subcommand = args.workflow_command

    if subcommand == "start":
        client = store.get_client(args.client_id)
        if client is None:
            print(f"❌ Unknown client: {args.client_id}")
            return 1
        _print_workflow(machine.start(client.id, client.name))
        return 0

    if subcommand == "list":
        workflows = machine.list_workflows()
        if not workflows:
            print("No workflows in progress")
            return 0
        for state in workflows:
            print(
                f"  [{state.id}] {state.client_name}: step {state.current_step} "
                f"({state.step.label}), updated {state.last_updated}"
            )
        return 0

    if subcommand is None:
        print("❌ Specify a workflow subcommand")
        return 1

    if subcommand == "complete":
        if not machine.complete(args.workflow_id):
            print(f"❌ Workflow not found: {args.workflow_id}")
            return 1
        print(f"✓ Workflow {args.workflow_id} completed")
        return 0

    try:
        if subcommand == "show":
            state = machine.resume(args.workflow_id)
        elif subcommand == "advance":
            state = machine.advance(args.workflow_id)
        elif subcommand == "back":
            state = machine.retreat(args.workflow_id)
        elif subcommand == "goto":
            state = machine.jump_to(args.workflow_id, args.step)
        elif subcommand == "mark":
            state = machine.mark_complete(args.workflow_id, args.step)
        else:
            state = machine.suspend(args.workflow_id)
    except InvalidTransitionError as e:
        print(f"❌ {e}")
        return 1

    if state is None:
        print(f"❌ Workflow not found: {args.workflow_id}")
        return 1

    _print_workflow(state)
    return 0


def cmd_entries(config: Config, args: argparse.Namespace) -> int:
    """List and review journal entries."""
    store = StateStore(config.state_db_path)
    review = JournalReview(store, WorkflowStateMachine(store))

    if args.entries_command == "list":
        entries = store.list_journal_entries(client_id=args.client_id, status=args.status)
        if not entries:
            print("No journal entries")
            return 0
        for entry in entries:
            confidence = f"{entry.confidence:.0%}" if entry.confidence is not None else "-"
            print(
                f"  [{entry.id}] {entry.entry_date} {entry.supplier or '-'} ¥{entry.amount:,} "
                f"→ {entry.account_item_id} / {entry.tax_category_id} "
                f"({entry.status.value}, {confidence})"
            )
        return 0

    try:
        if args.entries_command == "approve":
            review.approve(args.entry_id)
            print(f"✓ Approved entry {args.entry_id}")
            return 0
        if args.entries_command == "reject":
            review.reject(args.entry_id)
            print(f"✓ Rejected entry {args.entry_id}")
            return 0
    except AutoJournalError as e:
        print(f"❌ {e}")
        return 1

    print("❌ Specify an entries subcommand (list, approve, reject)")
    return 1


def cmd_summary(config: Config, client_id: str) -> int:
    """Show income, expense and account item totals for a client."""
    store = StateStore(config.state_db_path)

    try:
        summary = SummaryService(store).summarize_client(client_id)
    except AutoJournalError as e:
        print(f"❌ {e}")
        return 1

    print(f"\n📊 Summary for {client_id}")
    print("=" * 40)
    print(f"  Entries:      {summary.entry_count} ({summary.pending_count} pending)")
    print(f"  Income:       ¥{summary.income_total:,}")
    print(f"  Expense:      ¥{summary.expense_total:,}")
    print(f"  Difference:   ¥{summary.difference:,}")

    if summary.account_items:
        print("\n  By account item:")
        for item in summary.account_items:
            print(f"    {item.name:<12} ¥{item.amount:>10,} {item.percent:>3}%")
    print()

    return 0


def cmd_export(config: Config, client_id: str, output: Path, workflow_id: str | None) -> int:
    """Export approved entries of a client to CSV."""
    store = StateStore(config.state_db_path)
    service = ExportService(
        store,
        CsvExportSink(output, state_store=store),
        workflow=WorkflowStateMachine(store),
    )

    try:
        outcome = service.export_client(client_id, workflow_id=workflow_id)
    except AutoJournalError as e:
        print(f"❌ Export failed: {e}")
        return 1

    print(f"✓ Exported {outcome.accepted_count} entries to {output}")
    if outcome.rejected_count:
        print(f"⚠ Rejected {outcome.rejected_count}:")
        for error in outcome.errors:
            print(f"     {error}")
        return 1
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config, parsed.force)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"❌ Config error: {error}")
        return 1

    # Route to command
    if parsed.command == "status":
        return cmd_status(config)
    elif parsed.command == "master":
        return cmd_master(config, parsed.master_command)
    elif parsed.command == "clients":
        return cmd_clients(config, parsed)
    elif parsed.command == "rules":
        return cmd_rules(config, parsed)
    elif parsed.command == "classify":
        return cmd_classify(config, parsed)
    elif parsed.command == "workflow":
        return cmd_workflow(config, parsed)
    elif parsed.command == "entries":
        return cmd_entries(config, parsed)
    elif parsed.command == "summary":
        return cmd_summary(config, parsed.client_id)
    elif parsed.command == "export":
        return cmd_export(config, parsed.client_id, parsed.output, parsed.workflow_id)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
