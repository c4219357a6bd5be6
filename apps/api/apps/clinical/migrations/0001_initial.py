# Generated migration for clinical app

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rut', models.CharField(max_length=12, unique=True)),
                ('full_name', models.CharField(max_length=100)),
                ('phone', models.CharField(blank=True, max_length=20, null=True)),
                ('email', models.EmailField(blank=True, max_length=120, null=True)),
                ('address', models.CharField(blank=True, max_length=150, null=True)),
                ('sector', models.CharField(blank=True, max_length=80, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('captured_by', models.ForeignKey(blank=True, help_text='Account that captured this client (immutable)', null=True, on_delete=django.db.models.deletion.PROTECT, related_name='captured_clients', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Client',
                'verbose_name_plural': 'Clients',
                'db_table': 'client',
                'indexes': [
                    models.Index(fields=['captured_by'], name='idx_client_captured_by'),
                    models.Index(fields=['created_at'], name='idx_client_created'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Operativo',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=120)),
                ('date', models.DateField()),
                ('location', models.CharField(blank=True, max_length=150, null=True)),
                ('capacity', models.PositiveIntegerField(blank=True, help_text='Total slots (null = unlimited)', null=True, validators=[django.core.validators.MinValueValidator(1)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Operativo',
                'verbose_name_plural': 'Operativos',
                'db_table': 'operativo',
                'indexes': [
                    models.Index(fields=['date'], name='idx_operativo_date'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('scheduled_at', models.DateTimeField()),
                ('status', models.CharField(choices=[('scheduled', 'Programada'), ('confirmed', 'Confirmada'), ('cancelled', 'Cancelada'), ('no_show', 'No asistió'), ('attended', 'Atendida')], default='scheduled', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='clinical.client')),
                ('operativo', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='appointments', to='clinical.operativo')),
                ('ophthalmologist', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assigned_appointments', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'db_table': 'appointment',
                'indexes': [
                    models.Index(fields=['client'], name='idx_appointment_client'),
                    models.Index(fields=['operativo'], name='idx_appointment_operativo'),
                    models.Index(fields=['scheduled_at'], name='idx_appointment_scheduled'),
                    models.Index(fields=['status'], name='idx_appointment_status'),
                ],
            },
        ),
    ]
