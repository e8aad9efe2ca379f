"""Agent module -- router, tool-calling loop and LangGraph workflow.

Import from the submodules (``src.agent.graph``, ``src.agent.loop``...);
``src.llm`` depends on ``src.agent.state``, so this package stays empty.
"""
