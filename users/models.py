from django.contrib.auth.hashers import check_password, make_password
from django.db import models
import logging

logger = logging.getLogger(__name__)


class TimestampedModel(models.Model):
    """Base model with creation/update timestamps"""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Identity(TimestampedModel):
    """Phone-bound account holding credentials, referral code and the star ledger.

    ``granted_total`` only ever changes through the rewards ledger (welcome
    bonus, referral reward, operator adjustment) and ``claimed_total`` only
    through the claim transaction. Neither is written with a Python-side
    read-then-write.
    """

    phone = models.CharField(max_length=16, unique=True, help_text="Canonical phone, e.g. +60123456789")
    username = models.CharField(max_length=32, unique=True, null=True, blank=True)
    password = models.CharField(max_length=128, blank=True, help_text="Django password hash (algorithm, salt and digest)")
    verified = models.BooleanField(default=False)
    is_banned = models.BooleanField(default=False)

    # Referrals
    referral_code = models.CharField(max_length=6, unique=True, null=True, blank=True)
    referred_by = models.CharField(max_length=16, null=True, blank=True, help_text="Phone of the referrer")
    referral_count = models.PositiveIntegerField(default=0)

    # Ledger
    granted_total = models.IntegerField(default=0, help_text="Cumulative stars granted (welcome, referrals, adjustments)")
    claimed_total = models.IntegerField(default=0, help_text="Watermark: how much of granted_total has been moved to devices")
    last_claim_device_id = models.CharField(max_length=128, null=True, blank=True)
    last_claimed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Identity"
        verbose_name_plural = "Identities"
        indexes = [
            models.Index(fields=['referred_by'], name='identity_referred_by_idx'),
        ]

    def __str__(self):
        return self.username or self.phone

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        if not self.password:
            return False
        return check_password(raw_password, self.password)

    @property
    def pending(self):
        """Granted but not yet claimed. Not clamped: may be negative after a deduction."""
        return self.granted_total - self.claimed_total

    @property
    def bonus_granted(self):
        """Legacy compatibility flag, derived from the watermark."""
        return self.claimed_total > 0
