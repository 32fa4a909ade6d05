"""Commit message provider gateway.

Import from submodules:
- abc: MessageProvider
- real: EditorMessageProvider
- static: TemplateMessageProvider, FixedMessageProvider
- fake: FakeMessageProvider
"""
