"""Simple agent with weather and time tools, on one multi-turn thread"""
from agent_tools import TOOL_DEFINITIONS, execute_tool
from llm import MAX_TOKENS, MODEL, get_client, response_text

AGENT_NAME = "Assistant"
INSTRUCTIONS = (
    "You are a helpful assistant with access to weather and time information. "
    "Use the available tools to answer questions about weather conditions and current time."
)

DEMO_QUERIES = (
    "What's the weather like in Seattle?",
    "What time is it in Tokyo?",
    "Compare the weather in London and Paris",
)


class AgentThread:
    """Conversation history shared across turns of one session"""

    def __init__(self):
        self.messages = []

    def add(self, role: str, content):
        self.messages.append({"role": role, "content": content})

    def __len__(self):
        return len(self.messages)


def run_tool_call(block) -> dict:
    """Execute one tool_use block and wrap the outcome as a tool_result"""
    print(f"\n🔧 Executing tool: {block.name}")
    print(f"   Input: {block.input}")

    result = execute_tool(block.name, block.input)
    tool_result = {
        "type": "tool_result",
        "tool_use_id": block.id,
        "content": result.content
    }

    if result.is_error:
        print(f"   Error: {result.content}\n")
        tool_result["is_error"] = True
    else:
        print(f"   Result: {result.content}\n")

    return tool_result


def run_agent(
    user_message: str,
    thread: AgentThread,
    client=None,
    max_iterations: int = 10
) -> str:
    """Run one user turn on the thread, streaming text to stdout

    Args:
        user_message: The user's question/request
        thread: Conversation thread, updated in place
        client: Optional Anthropic client; the shared one is used by default
        max_iterations: Cap on model calls for this turn

    Returns:
        The assistant's reply text for this turn
    """
    client = client or get_client()
    thread.add("user", user_message)

    reply_parts = []
    iteration = 0

    while iteration < max_iterations:
        iteration += 1

        request_params = {
            "model": MODEL,
            "max_tokens": MAX_TOKENS,
            "system": INSTRUCTIONS,
            "tools": TOOL_DEFINITIONS,
            "messages": thread.messages
        }

        # Stream only text content
        with client.messages.stream(**request_params) as stream:
            for event in stream:
                if event.type == "content_block_delta":
                    if hasattr(event.delta, 'text'):
                        print(event.delta.text, end='', flush=True)

            response = stream.get_final_message()

        thread.add("assistant", response.content)
        text = response_text(response)
        if text:
            reply_parts.append(text)

        if response.stop_reason == "tool_use":
            tool_results = [
                run_tool_call(block)
                for block in response.content
                if block.type == "tool_use"
            ]
            thread.add("user", tool_results)
            continue

        if response.stop_reason != "end_turn":
            print(f"\n⚠️  Unexpected stop_reason: {response.stop_reason}")
        return "\n".join(reply_parts)

    print(f"\n⚠️  Max iterations ({max_iterations}) reached. Stopping.")
    return "\n".join(reply_parts)


def should_quit(user_input: str | None) -> bool:
    """Blank input or 'quit' ends the interactive session"""
    if user_input is None or not user_input.strip():
        return True
    return user_input.strip().lower() == "quit"


def main(read_input=input):
    thread = AgentThread()

    print("=== Simple Agent with Tools Demo ===")
    print("Ask questions about weather or time. Type 'quit' to exit.\n")

    for query in DEMO_QUERIES:
        print(f"User: {query}")
        print(f"{AGENT_NAME}: ", end='', flush=True)
        run_agent(query, thread)
        print("\n")

    print("--- Interactive Mode ---")
    while True:
        try:
            user_input = read_input("You: ")
        except EOFError:
            break

        if should_quit(user_input):
            break

        print(f"{AGENT_NAME}: ", end='', flush=True)
        run_agent(user_input, thread)
        print("\n")


if __name__ == "__main__":
    main()
