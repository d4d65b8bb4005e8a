"""
Ntfy Toaster

Desktop notification client for ntfy-style publish/subscribe topics.
Keeps one streaming HTTP connection per configured topic and turns
message events into toasts.

Architecture:
    config file -> config_store -> supervisor -> [subscription -> dispatcher] per topic -> notifications

Components:
    - config_store: topic file loading and change polling
    - supervisor: owns one subscription per topic, full restart on config change
    - stream_client: HTTP stream reader, reconnecting subscription, dispatch channel
    - dispatcher: forwards message events to the renderer
    - notifications: toast formatting and sinks
"""

__version__ = "0.1.0"
