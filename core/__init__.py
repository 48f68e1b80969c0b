"""
insight-board core package.

Modules
───────
models        - Pydantic data models (Insight, Topic, TopicDraft, CommandResult, Notification)
broker        - SubscriptionBroker: token-based push registry over the data service
commands      - TopicCommandClient: add / update / soft-delete with normalised results
filtering     - filter_insights: case-insensitive, order-preserving search
view_state    - ViewStateController: tagged dialog state and draft buffers
notifications - NotificationCenter: toast queue
page          - InsightPage: snapshot holder, mount/unmount lifecycle
service       - DataService contract and the SQLite-backed LocalDataService
store         - SQLite storage for topics (soft delete) and insights
"""
