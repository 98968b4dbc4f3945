from django.db import models


class ReferralEvent(models.Model):
    """Append-only audit record of a referral reward paid at registration."""

    referrer = models.CharField(max_length=16, db_index=True, help_text="Phone of the identity that was rewarded")
    referee = models.CharField(max_length=16, help_text="Phone of the newly registered identity")
    code = models.CharField(max_length=6)
    reward = models.IntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Referral Event"
        verbose_name_plural = "Referral Events"

    def __str__(self):
        return f"{self.referrer} <- {self.referee} (+{self.reward})"


class LedgerEntry(models.Model):
    """Individual star ledger movements, written with the change they record."""

    WELCOME = 'welcome'
    REFERRAL = 'referral'
    ADJUSTMENT = 'adjustment'
    CLAIM = 'claim'
    ENTRY_TYPE_CHOICES = [
        (WELCOME, 'Welcome bonus'),
        (REFERRAL, 'Referral reward'),
        (ADJUSTMENT, 'Operator adjustment'),
        (CLAIM, 'Claimed to device'),
    ]

    identity = models.ForeignKey(
        'users.Identity',
        on_delete=models.PROTECT,
        related_name='ledger_entries',
    )
    entry_type = models.CharField(max_length=20, choices=ENTRY_TYPE_CHOICES)
    amount = models.IntegerField(help_text="Signed change to granted_total, or stars moved for a claim")
    granted_after = models.IntegerField()
    claimed_after = models.IntegerField()
    device_id = models.CharField(max_length=128, blank=True)
    reference = models.CharField(max_length=128, blank=True, help_text="What caused this entry (referee phone, operator, ...)")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        indexes = [
            models.Index(fields=['identity', 'entry_type'], name='ledger_identity_type_idx'),
        ]

    def __str__(self):
        return f"{self.identity} - {self.entry_type}: {self.amount}"
