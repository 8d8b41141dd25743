""" This module contains abstract models that are used in multiple apps """


from django.db import models


class UpdateInfoModel(models.Model):
    """ Model that keeps track of when it was created and updated """

    created = models.DateTimeField(auto_now_add=True)
    modified = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
