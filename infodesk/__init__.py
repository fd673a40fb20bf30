"""Hospital info desk application.

Holds the department/doctor directory exposed over REST and the chat
session controller served over WebSocket and from the console.
"""
