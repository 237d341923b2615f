"""
Conversational agent: intent selection, operations and session history
"""
