""" Exceptions raised by the sync operations

Bad input is reported with Django's ValidationError; the classes in this
module cover lookups of things that don't exist and failures of the
database itself.
"""

from django.core.exceptions import ObjectDoesNotExist


class UnknownObject(ObjectDoesNotExist):
    """ A referenced object does not exist """

    def __init__(self, name):
        self.name = name
        super().__init__(self.message.format(name=name))

    message = "{name} does not exist"


class UnknownUser(UnknownObject):
    message = "user {name} does not exist"


class UnknownDevice(UnknownObject):
    message = "device {name} does not exist"


class UnknownPodcast(UnknownObject):
    message = "podcast {name} does not exist"


class UnknownEpisode(UnknownObject):
    message = "episode {name} does not exist"


class RepositoryError(Exception):
    """ The database failed while executing an operation

    The message shown to users is deliberately generic; the database error is
    available as __cause__ """

    user_message = "database error"

    def __str__(self):
        return self.user_message
