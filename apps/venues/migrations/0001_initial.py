import uuid
from decimal import Decimal
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import migrations, models
import django.db.models.deletion


EMIRATE_CHOICES = [
    ('Abu Dhabi', 'Abu Dhabi'),
    ('Dubai', 'Dubai'),
    ('Sharjah', 'Sharjah'),
    ('Ajman', 'Ajman'),
    ('Umm Al Quwain', 'Umm Al Quwain'),
    ('Ras Al Khaimah', 'Ras Al Khaimah'),
    ('Fujairah', 'Fujairah'),
]
MODERATION_CHOICES = [('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected')]
PRICE_RANGE_CHOICES = [('$', '$'), ('$$', '$$'), ('$$$', '$$$'), ('$$$$', '$$$$')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Amenity',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('slug', models.SlugField(unique=True)),
                ('name', models.CharField(max_length=100)),
            ],
            options={
                'db_table': 'amenities',
                'verbose_name_plural': 'amenities',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Category',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=100)),
                ('name_ar', models.CharField(blank=True, max_length=100)),
                ('slug', models.SlugField(max_length=120, unique=True)),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='children', to='venues.category')),
            ],
            options={
                'db_table': 'categories',
                'verbose_name_plural': 'categories',
                'ordering': ['sort_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='Business',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=200)),
                ('name_ar', models.CharField(blank=True, max_length=200)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('status', models.CharField(choices=MODERATION_CHOICES, default='pending', max_length=20)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='businesses', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'businesses',
                'verbose_name_plural': 'businesses',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Venue',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('name_ar', models.CharField(blank=True, max_length=200)),
                ('description', models.TextField(blank=True)),
                ('description_ar', models.TextField(blank=True)),
                ('address', models.TextField(blank=True)),
                ('city', models.CharField(max_length=100)),
                ('emirate', models.CharField(choices=EMIRATE_CHOICES, max_length=20)),
                ('latitude', models.DecimalField(blank=True, decimal_places=8, max_digits=10, null=True, validators=[MinValueValidator(Decimal('-90')), MaxValueValidator(Decimal('90'))])),
                ('longitude', models.DecimalField(blank=True, decimal_places=8, max_digits=11, null=True, validators=[MinValueValidator(Decimal('-180')), MaxValueValidator(Decimal('180'))])),
                ('price_range', models.CharField(blank=True, choices=PRICE_RANGE_CHOICES, max_length=4)),
                ('is_women_only', models.BooleanField(default=False)),
                ('is_featured', models.BooleanField(default=False)),
                ('is_active', models.BooleanField(default=True)),
                ('status', models.CharField(choices=MODERATION_CHOICES, default='pending', max_length=20)),
                ('average_rating', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=3, validators=[MinValueValidator(Decimal('0.00'))])),
                ('total_reviews', models.PositiveIntegerField(default=0)),
                ('total_visits', models.PositiveIntegerField(default=0)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('amenities', models.ManyToManyField(blank=True, related_name='venues', to='venues.amenity')),
                ('business', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='venues', to='venues.business')),
                ('category', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='venues', to='venues.category')),
                ('subcategory', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='subcategory_venues', to='venues.category')),
            ],
            options={
                'db_table': 'venues',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['business', 'is_active'], name='venues_busines_1f0c2a_idx'),
                    models.Index(fields=['category', 'status'], name='venues_categor_8d3b71_idx'),
                    models.Index(fields=['emirate', 'city'], name='venues_emirate_52a9e4_idx'),
                    models.Index(fields=['latitude', 'longitude'], name='venues_latitud_b7d0c6_idx'),
                    models.Index(fields=['is_featured', 'average_rating'], name='venues_is_feat_3e61f8_idx'),
                    models.Index(fields=['status'], name='venues_status_a40d95_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='VenueVisit',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('visited_at', models.DateTimeField()),
                ('source', models.CharField(default='app', max_length=20)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='venue_visits', to=settings.AUTH_USER_MODEL)),
                ('venue', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='visits', to='venues.venue')),
            ],
            options={
                'db_table': 'venue_visits',
                'ordering': ['-visited_at'],
                'indexes': [
                    models.Index(fields=['user', 'venue', 'visited_at'], name='venue_visits_user_v_0e5f1b_idx'),
                    models.Index(fields=['visited_at'], name='venue_visits_visite_9a2c44_idx'),
                ],
            },
        ),
    ]
