from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ('users', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ReferralEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('referrer', models.CharField(db_index=True, help_text='Phone of the identity that was rewarded', max_length=16)),
                ('referee', models.CharField(help_text='Phone of the newly registered identity', max_length=16)),
                ('code', models.CharField(max_length=6)),
                ('reward', models.IntegerField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Referral Event',
                'verbose_name_plural': 'Referral Events',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='LedgerEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('entry_type', models.CharField(choices=[('welcome', 'Welcome bonus'), ('referral', 'Referral reward'), ('adjustment', 'Operator adjustment'), ('claim', 'Claimed to device')], max_length=20)),
                ('amount', models.IntegerField(help_text='Signed change to granted_total, or stars moved for a claim')),
                ('granted_after', models.IntegerField()),
                ('claimed_after', models.IntegerField()),
                ('device_id', models.CharField(blank=True, max_length=128)),
                ('reference', models.CharField(blank=True, help_text='What caused this entry (referee phone, operator, ...)', max_length=128)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('identity', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='ledger_entries', to='users.identity')),
            ],
            options={
                'verbose_name': 'Ledger Entry',
                'verbose_name_plural': 'Ledger Entries',
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['identity', 'entry_type'], name='ledger_identity_type_idx')],
            },
        ),
    ]
