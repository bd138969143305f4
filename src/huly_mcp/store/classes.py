"""Huly class, space and category references used by the tracker."""

PROJECT = "tracker:class:Project"
ISSUE = "tracker:class:Issue"
ISSUE_STATUS = "tracker:class:IssueStatus"
TAG_ELEMENT = "tags:class:TagElement"
TAG_REFERENCE = "tags:class:TagReference"

ISSUE_TASK_TYPE = "tracker:taskTypes:Issue"
LABEL_CATEGORY_OTHER = "tracker:category:Other"

SPACE_SPACE = "core:space:Space"
SPACE_TX = "core:space:Tx"
DEFAULT_PROJECT_SPACE = "tracker:project:Default"

TX_CREATE_DOC = "core:class:TxCreateDoc"
TX_UPDATE_DOC = "core:class:TxUpdateDoc"
TX_REMOVE_DOC = "core:class:TxRemoveDoc"

# Collection attributes on an issue
LABELS_COLLECTION = "labels"
SUB_ISSUES_COLLECTION = "subIssues"
