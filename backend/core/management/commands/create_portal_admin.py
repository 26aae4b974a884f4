"""
Management command to create or promote a portal admin account
Usage: python manage.py create_portal_admin <username> --email admin@example.com
"""
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from backend.core.models import User
from backend.core.utils import create_audit_log


class Command(BaseCommand):
    help = 'Create a portal admin, or promote an existing account to admin'

    def add_arguments(self, parser):
        parser.add_argument('username', help='Login name for the admin account')
        parser.add_argument('--email', default='', help='Email address')
        parser.add_argument(
            '--password',
            help='Password for a new account (prompted for when omitted)',
        )
        parser.add_argument(
            '--superuser',
            action='store_true',
            help='Also grant Django admin site access',
        )

    def handle(self, *args, **options):
        username = options['username']
        user = User.objects.filter(username=username).first()

        if user is None:
            password = options.get('password')
            if not password:
                password = input('Password: ')
            if len(password) < 6:
                raise CommandError('Password must be at least 6 characters.')
            action = 'create'
            with transaction.atomic():
                user = User.objects.create_user(
                    username=username,
                    email=options['email'],
                    password=password,
                    role=User.ROLE_ADMIN,
                    approved=True,
                    is_active=True,
                )
        else:
            if user.company_id:
                raise CommandError(f'{username} belongs to company {user.company_id}; admins cannot be linked to a company.')
            action = 'update'
            user.role = User.ROLE_ADMIN
            user.approved = True
            user.is_active = True
            user.save(update_fields=['role', 'approved', 'is_active', 'updated_at'])

        if options['superuser'] and not user.is_superuser:
            user.is_staff = True
            user.is_superuser = True
            user.save(update_fields=['is_staff', 'is_superuser', 'updated_at'])

        create_audit_log(
            action=action,
            model_name='User',
            object_id=user.id,
            object_name=user.username,
            changes={'role': user.role, 'is_superuser': user.is_superuser},
        )
        verb = 'Created' if action == 'create' else 'Promoted'
        self.stdout.write(self.style.SUCCESS(f'✓ {verb} portal admin "{user.username}"'))
