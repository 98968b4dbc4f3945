from django.db import models


class TelegramBinding(models.Model):
    """Maps a Telegram user to the phone number they proved they own."""

    channel_user_id = models.CharField(max_length=64, unique=True)
    phone = models.CharField(max_length=16, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.channel_user_id} -> {self.phone}"


class OtpChallenge(models.Model):
    """One active one-time code per phone; re-requesting overwrites it."""

    phone = models.CharField(max_length=16, unique=True)
    channel_user_id = models.CharField(max_length=64)
    code_hash = models.CharField(max_length=128)
    expires_at = models.DateTimeField()
    attempts = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['expires_at'], name='otp_challenge_expiry_idx'),
        ]

    def __str__(self):
        return f"OTP for {self.phone} (attempts={self.attempts})"
