# State property read by the graph's approval routing. Must match graphs/agent_executor.py.
APPROVAL_RESULT_PROPERTY = "approval_result"
APPROVED = "APPROVED"
REJECTED = "REJECTED"

# Stream modes requested from LangGraph for every run
RUN_STREAM_MODES = ["messages", "updates"]

# RUN_ERROR code emitted when a run fails
AGENT_ERROR_CODE = "AGENT_ERROR"
