"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Transcript display with citations and a thinking indicator
    - Auto-growing input with Enter / Shift+Enter handling
    - Browser history integration so back/forward restores chat turns

State lives in chat_view.ChatView; the page only renders it and relays
browser events. All answering is delegated to the API over HTTP.
"""
