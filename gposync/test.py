from django.contrib.auth import get_user_model

from gposync.utils import random_token


def create_user():
    """ Create a user with random data """
    User = get_user_model()
    password = random_token(10)
    username = random_token(8)
    user = User(username=username, email=username + "@example.com")
    user.set_password(password)
    user.is_active = True
    user.save()
    return user, password
