from django.db import models


class Device(models.Model):
    """Anonymous client device holding a scan-credit ("stars") balance."""

    device_id = models.CharField(max_length=128, unique=True)
    stars = models.PositiveIntegerField(default=0)
    last_active_date = models.CharField(
        max_length=10,
        blank=True,
        default='',
        help_text="Calendar day (YYYY-MM-DD, quota timezone) of the last top-up check",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.device_id}: {self.stars} stars"


class ScanLog(models.Model):
    """Append-only record of a scan that consumed one star."""

    device_id = models.CharField(max_length=128, db_index=True)
    target_id = models.CharField(max_length=128)
    score = models.PositiveSmallIntegerField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.device_id} scanned {self.target_id} ({self.score})"
