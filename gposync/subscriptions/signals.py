import django.dispatch

# indicates that a podcast was subscribed or unsubscribed
# ``sender`` will equal the podcast's class. Additionally the parameters
# ``instance``, ``user``, ``device`` and ``subscribed`` will be provided
subscription_changed = django.dispatch.Signal()
