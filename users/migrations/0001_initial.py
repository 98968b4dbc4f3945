from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Identity',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('phone', models.CharField(help_text='Canonical phone, e.g. +60123456789', max_length=16, unique=True)),
                ('username', models.CharField(blank=True, max_length=32, null=True, unique=True)),
                ('password', models.CharField(blank=True, help_text='Django password hash (algorithm, salt and digest)', max_length=128)),
                ('verified', models.BooleanField(default=False)),
                ('is_banned', models.BooleanField(default=False)),
                ('referral_code', models.CharField(blank=True, max_length=6, null=True, unique=True)),
                ('referred_by', models.CharField(blank=True, help_text='Phone of the referrer', max_length=16, null=True)),
                ('referral_count', models.PositiveIntegerField(default=0)),
                ('granted_total', models.IntegerField(default=0, help_text='Cumulative stars granted (welcome, referrals, adjustments)')),
                ('claimed_total', models.IntegerField(default=0, help_text='Watermark: how much of granted_total has been moved to devices')),
                ('last_claim_device_id', models.CharField(blank=True, max_length=128, null=True)),
                ('last_claimed_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Identity',
                'verbose_name_plural': 'Identities',
                'indexes': [models.Index(fields=['referred_by'], name='identity_referred_by_idx')],
            },
        ),
    ]
