import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion


MODERATION_CHOICES = [('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('venues', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Offer',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('title_ar', models.CharField(blank=True, max_length=200)),
                ('description', models.TextField()),
                ('description_ar', models.TextField(blank=True)),
                ('type', models.CharField(choices=[('discount', 'Discount'), ('bogo', 'Buy One Get One'), ('free_item', 'Free Item'), ('cashback', 'Cashback'), ('points', 'Points')], max_length=20)),
                ('discount_type', models.CharField(blank=True, choices=[('percentage', 'Percentage'), ('fixed_amount', 'Fixed Amount')], max_length=20)),
                ('discount_value', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True, validators=[MinValueValidator(Decimal('0'))])),
                ('original_price', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True, validators=[MinValueValidator(Decimal('0'))])),
                ('discounted_price', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True, validators=[MinValueValidator(Decimal('0'))])),
                ('terms_conditions', models.TextField(blank=True)),
                ('terms_conditions_ar', models.TextField(blank=True)),
                ('start_date', models.DateTimeField()),
                ('end_date', models.DateTimeField()),
                ('usage_limit', models.PositiveIntegerField(blank=True, help_text='Total redemptions allowed; empty means unlimited', null=True)),
                ('usage_limit_per_user', models.PositiveIntegerField(blank=True, help_text='Redemptions allowed per user; empty means unlimited', null=True)),
                ('used_count', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('is_featured', models.BooleanField(default=False)),
                ('priority', models.IntegerField(default=0)),
                ('status', models.CharField(choices=MODERATION_CHOICES, default='pending', max_length=20)),
                ('qr_code', models.TextField(blank=True)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('business', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='offers', to='venues.business')),
                ('venue', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='offers', to='venues.venue')),
            ],
            options={
                'db_table': 'offers',
                'ordering': ['-priority', '-created_at'],
                'indexes': [
                    models.Index(fields=['business', 'is_active'], name='offers_busines_6a1d3e_idx'),
                    models.Index(fields=['venue', 'status'], name='offers_venue_i_c48f20_idx'),
                    models.Index(fields=['start_date', 'end_date'], name='offers_start_d_29b7a5_idx'),
                    models.Index(fields=['is_featured', 'priority'], name='offers_is_feat_e3c951_idx'),
                    models.Index(fields=['status'], name='offers_status_8f06b2_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(
                        condition=models.Q(('usage_limit__isnull', True), ('used_count__lte', models.F('usage_limit')), _connector='OR'),
                        name='offer_used_count_within_limit',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='OfferRedemption',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('redeemed_at', models.DateTimeField()),
                ('verification_code', models.CharField(max_length=8)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('completed', 'Completed'), ('cancelled', 'Cancelled')], default='pending', max_length=20)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('offer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='redemptions', to='offers.offer')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='redemptions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'offer_redemptions',
                'ordering': ['-redeemed_at'],
                'indexes': [
                    models.Index(fields=['user', 'redeemed_at'], name='offer_redem_user_id_4e7a19_idx'),
                    models.Index(fields=['offer', 'status'], name='offer_redem_offer_i_b2d86c_idx'),
                    models.Index(fields=['offer', 'user', 'status'], name='offer_redem_offer_u_0d5c7f_idx'),
                    models.Index(fields=['verification_code'], name='offer_redem_verific_73e1a8_idx'),
                    models.Index(fields=['redeemed_at'], name='offer_redem_redeeme_95f4c2_idx'),
                ],
            },
        ),
    ]
