from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("podcasts", "0001_initial"),
        ("users", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="UserSetting",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "scope",
                    models.CharField(
                        choices=[
                            ("account", "Account"),
                            ("device", "Device"),
                            ("podcast", "Podcast"),
                            ("episode", "Episode"),
                        ],
                        max_length=7,
                    ),
                ),
                ("key", models.CharField(max_length=100)),
                ("value", models.TextField()),
                (
                    "device",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        to="users.device",
                    ),
                ),
                (
                    "episode",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        to="podcasts.episode",
                    ),
                ),
                (
                    "podcast",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        to="podcasts.podcast",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "User Setting",
                "verbose_name_plural": "User Settings",
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("device__isnull", True),
                                ("episode__isnull", True),
                                ("podcast__isnull", True),
                                ("scope", "account"),
                            ),
                            models.Q(
                                ("device__isnull", False),
                                ("episode__isnull", True),
                                ("podcast__isnull", True),
                                ("scope", "device"),
                            ),
                            models.Q(
                                ("device__isnull", True),
                                ("episode__isnull", True),
                                ("podcast__isnull", False),
                                ("scope", "podcast"),
                            ),
                            models.Q(
                                ("device__isnull", True),
                                ("episode__isnull", False),
                                ("podcast__isnull", False),
                                ("scope", "episode"),
                            ),
                            _connector="OR",
                        ),
                        name="usersettings_scope_fields",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("scope", "account")),
                        fields=("user", "key"),
                        name="usersettings_unique_account",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("scope", "device")),
                        fields=("user", "device", "key"),
                        name="usersettings_unique_device",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("scope", "podcast")),
                        fields=("user", "podcast", "key"),
                        name="usersettings_unique_podcast",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("scope", "episode")),
                        fields=("user", "podcast", "episode", "key"),
                        name="usersettings_unique_episode",
                    ),
                ],
            },
        )
    ]
