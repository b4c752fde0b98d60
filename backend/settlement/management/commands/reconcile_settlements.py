# settlement/management/commands/reconcile_settlements.py
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ledger.errors import LedgerError
from settlement.bridge import compensate, confirm
from settlement.models import SettlementRecord


class Command(BaseCommand):
    help = (
        "List settlements whose external outcome is unknown and resolve them "
        "against the settlement service's own transaction log"
    )

    def add_arguments(self, parser):
        parser.add_argument(
            '--account',
            type=str,
            help='Only show pending settlements for this account key'
        )
        parser.add_argument(
            '--confirm',
            type=int,
            metavar='ID',
            help='Mark settlement ID as confirmed (requires --txid)'
        )
        parser.add_argument(
            '--txid',
            type=str,
            help='External transaction id found in the settlement log'
        )
        parser.add_argument(
            '--fail',
            type=int,
            metavar='ID',
            help='Mark settlement ID as failed and re-credit the account'
        )
        parser.add_argument(
            '--reason',
            type=str,
            default='Not found in settlement log (manual reconciliation)',
            help='Reason stored on a failed settlement'
        )

    def handle(self, *args, **options):
        if options.get('confirm') and options.get('fail'):
            raise CommandError('Use either --confirm or --fail, not both')

        if options.get('confirm'):
            if not options.get('txid'):
                raise CommandError('--confirm requires --txid')
            try:
                record = confirm(options['confirm'], options['txid'])
            except LedgerError as e:
                raise CommandError(e.message)
            self.stdout.write(self.style.SUCCESS(
                f"Settlement {record.id} confirmed with txid {record.transaction_id}"
            ))
            return

        if options.get('fail'):
            try:
                record = compensate(options['fail'], options['reason'])
            except LedgerError as e:
                raise CommandError(e.message)
            self.stdout.write(self.style.SUCCESS(
                f"Settlement {record.id} failed; re-credited {record.amount} to {record.account.key}"
            ))
            return

        self._list_pending(options.get('account'))

    def _list_pending(self, account_key):
        pending = SettlementRecord.objects.select_related('account').filter(
            status=SettlementRecord.STATUS_PENDING,
        ).order_by('created_at')
        if account_key:
            pending = pending.filter(account__key=account_key)

        count = pending.count()
        if count == 0:
            self.stdout.write(self.style.SUCCESS('No settlements awaiting reconciliation.'))
            return

        self.stdout.write('=' * 70)
        self.stdout.write(self.style.WARNING(f'Found {count} settlement(s) awaiting reconciliation:'))
        self.stdout.write('=' * 70)

        now = timezone.now()
        for record in pending:
            age_minutes = (now - record.created_at).total_seconds() / 60
            self.stdout.write(
                f"  {record.id:6d} | Account: {record.account.key:20} | "
                f"Amount: {record.amount:8d} | Req: {(record.request_id or '-')[:20]:20} | "
                f"Age: {age_minutes:8.1f}m"
            )

        self.stdout.write('=' * 70)
        self.stdout.write(
            'Resolve each with --confirm ID --txid TX or --fail ID after checking the settlement log.'
        )
