from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import DatabaseError
from django.test import TestCase

from gposync.core.exceptions import RepositoryError, UnknownDevice
from gposync.core.transaction import repository_transaction
from gposync.test import create_user
from gposync.users.models import Device


class RepositoryTransactionTests(TestCase):
    def test_database_error(self):
        with self.assertRaises(RepositoryError) as cm:
            with repository_transaction():
                raise DatabaseError("connection lost")

        self.assertIsInstance(cm.exception.__cause__, DatabaseError)
        self.assertEqual(str(cm.exception), "database error")

    def test_rollback(self):
        user, pwd = create_user()

        with self.assertRaises(ValidationError):
            with repository_transaction():
                Device.objects.create(user=user, name="phone")
                raise ValidationError("invalid")

        self.assertFalse(Device.objects.filter(user=user).exists())

    def test_lookup_errors_pass_through(self):
        with self.assertRaises(ObjectDoesNotExist) as cm:
            with repository_transaction():
                raise UnknownDevice("phone")

        self.assertEqual(str(cm.exception), "device phone does not exist")
