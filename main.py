#!/usr/bin/env python3
"""
Recruitreach - recruiter discovery and cold outreach from the command line.

Usage:
    python main.py search <company> [--domain D]     Find and store recruiters
    python main.py find-email <first> <last> <domain>
    python main.py providers                         Show configured providers
    python main.py create-campaign <company_id> --position P --subject S --template-file F
    python main.py campaigns                         List campaigns
    python main.py send <id> [--dry-run]             Send a draft campaign
    python main.py delete-campaign <id>
    python main.py logs <id>                         Message log for a campaign
    python main.py stats                             Overall statistics
    python main.py init-db                           Create the database
"""

import argparse
import logging
import os
import sys

# Ensure project root is on the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from recruitreach.db import init_db
from recruitreach.manager import OutreachManager
from recruitreach.models import SENT_LOG_STATUSES
from recruitreach.summary import generate_campaign_text, generate_summary_text, print_status


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Quieten noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def cmd_search(args):
    """Resolve a company and its recruiters."""
    manager = OutreachManager()
    result = manager.resolve_company_and_contacts(args.company, domain=args.domain)

    if result.get('error'):
        print(f"\n✗ {result['error']}\n")
        return 1

    company = result['company']
    print()
    print(f"  {company['name']} ({company.get('domain') or 'no domain'}) - company #{company['id']}")
    print(f"  {result['message']}")
    print()

    for r in result['recruiters']:
        name = ' '.join(x for x in (r.get('first_name'), r.get('last_name')) if x) or 'Unknown'
        print(f"  • {name:<28} {r['email']:<36} {r['email_status']:<8} {r.get('email_provider') or ''}")
        if r.get('title'):
            print(f"      {r['title']}")

    for err in result.get('errors', []):
        source = err.get('provider') or err.get('email')
        print(f"  ⚠ {source}: {err['error']}")
    print()
    return 0


def cmd_find_email(args):
    """Sequential fallback lookup for one person."""
    manager = OutreachManager()
    result = manager.find_email(args.first_name, args.last_name, args.domain)

    if result.get('error'):
        print(f"\n✗ {result['error']}\n")
        return 1

    print()
    if result['email']:
        print(f"✓ {result['email']} (via {result['provider']}, status {result['status']})")
    elif result['status'] == 'no_providers':
        print("✗ No email providers configured")
    else:
        print(f"✗ No email found (tried: {', '.join(result['tried']) or 'none'})")

    for provider, error in result['errors'].items():
        print(f"  ⚠ {provider}: {error}")
    print()
    return 0 if result['email'] else 1


def cmd_providers(args):
    """Show configured providers and delivery backend."""
    manager = OutreachManager()
    print_status(manager.get_status())
    return 0


def cmd_create_campaign(args):
    """Create a draft campaign."""
    if args.template_file:
        with open(args.template_file, "r", encoding="utf-8") as f:
            template = f.read()
    else:
        template = args.template

    manager = OutreachManager()
    result = manager.create_campaign(args.company_id, args.position, args.subject, template)

    if result.get('error'):
        print(f"\n✗ {result['error']}\n")
        return 1

    print(f"\n✓ Created campaign #{result['id']} ({result['status']})\n")
    return 0


def cmd_campaigns(args):
    """List campaigns."""
    manager = OutreachManager()
    campaigns = manager.list_campaigns()

    if not campaigns:
        print("\n✓ No campaigns\n")
        return 0

    print()
    print(f"{'ID':<5} {'Status':<10} {'Sent':>6} {'Total':>6}  Position @ Company")
    print("-" * 70)
    for c in campaigns:
        print(
            f"{c['id']:<5} {c['status']:<10} {c['emails_sent']:>6} {c['total_emails']:>6}  "
            f"{c['position_title'][:30]} @ {c.get('company_name') or 'N/A'}"
        )
    print()
    return 0


def cmd_send(args):
    """Send a draft campaign."""
    manager = OutreachManager(dry_run=args.dry_run)

    if args.dry_run:
        print("\n🔍 DRY RUN MODE - No emails will be sent\n")

    result = manager.dispatch_campaign(args.campaign_id, from_email=args.from_email, from_name=args.from_name)

    if result.get('status') != 'completed':
        print(f"\n✗ {result.get('error', 'Campaign failed')}\n")
        return 1

    print()
    print(f"✓ Campaign #{result['campaignId']} completed")
    print(f"  Sent: {result['emailsSent']}/{result['totalEmails']}")
    print(f"  Failed: {result['emailsFailed']}")
    for err in result.get('errors', []):
        print(f"  ⚠ {err['email']}: {err['error']}")
    print()
    return 0


def cmd_delete_campaign(args):
    """Delete a campaign."""
    manager = OutreachManager()
    result = manager.delete_campaign(args.campaign_id)

    if result['success']:
        print(f"\n✓ Deleted campaign #{args.campaign_id}\n")
        return 0
    print(f"\n✗ {result['error']}\n")
    return 1


def cmd_logs(args):
    """Show the message log for a campaign."""
    manager = OutreachManager()
    logs = manager.get_campaign_logs(args.campaign_id)

    print()
    print(generate_campaign_text(args.campaign_id))
    print()

    for log in logs:
        if log['status'] in SENT_LOG_STATUSES:
            icon = "✓"
        elif log['status'] in ('failed', 'bounced'):
            icon = "✗"
        else:
            icon = "…"
        print(f"  {icon} {log['email']:<36} {log['status']:<10} attempts={log['attempts']}")
        if log.get('error_message'):
            print(f"      {log['error_message'][:100]}")
    print()
    return 0


def cmd_stats(args):
    """Show overall statistics."""
    manager = OutreachManager()
    print()
    print(generate_summary_text(manager.get_analytics()))
    return 0


def cmd_init_db(args):
    """Create database tables."""
    init_db()
    print("\n✓ Database initialised\n")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Recruitreach - recruiter discovery and cold outreach",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # search
    search_parser = subparsers.add_parser('search', help='Find recruiters at a company')
    search_parser.add_argument('company', help='Company name or domain')
    search_parser.add_argument('--domain', '-d', help='Company email domain')

    # find-email
    find_parser = subparsers.add_parser('find-email', help='Find one person\'s email')
    find_parser.add_argument('first_name')
    find_parser.add_argument('last_name')
    find_parser.add_argument('domain')

    # providers
    subparsers.add_parser('providers', help='Show configured providers')

    # create-campaign
    create_parser = subparsers.add_parser('create-campaign', help='Create a draft campaign')
    create_parser.add_argument('company_id', type=int, help='Company ID')
    create_parser.add_argument('--position', '-p', required=True, help='Position title')
    create_parser.add_argument('--subject', '-s', required=True, help='Subject template')
    body = create_parser.add_mutually_exclusive_group(required=True)
    body.add_argument('--template', '-t', help='Body template')
    body.add_argument('--template-file', '-f', help='File containing the body template')

    # campaigns
    subparsers.add_parser('campaigns', help='List campaigns')

    # send
    send_parser = subparsers.add_parser('send', help='Send a draft campaign')
    send_parser.add_argument('campaign_id', type=int, help='Campaign ID')
    send_parser.add_argument('--from-email', help='Sender address')
    send_parser.add_argument('--from-name', help='Sender display name')
    send_parser.add_argument('--dry-run', action='store_true', help='Log instead of sending')

    # delete-campaign
    delete_parser = subparsers.add_parser('delete-campaign', help='Delete a campaign')
    delete_parser.add_argument('campaign_id', type=int, help='Campaign ID')

    # logs
    logs_parser = subparsers.add_parser('logs', help='Show message log for a campaign')
    logs_parser.add_argument('campaign_id', type=int, help='Campaign ID')

    # stats
    subparsers.add_parser('stats', help='Show overall statistics')

    # init-db
    subparsers.add_parser('init-db', help='Create database tables')

    args = parser.parse_args()
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    # Command dispatch
    commands = {
        'search': cmd_search,
        'find-email': cmd_find_email,
        'providers': cmd_providers,
        'create-campaign': cmd_create_campaign,
        'campaigns': cmd_campaigns,
        'send': cmd_send,
        'delete-campaign': cmd_delete_campaign,
        'logs': cmd_logs,
        'stats': cmd_stats,
        'init-db': cmd_init_db,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)
    parser.print_help()
    return 0


if __name__ == '__main__':
    sys.exit(main())
