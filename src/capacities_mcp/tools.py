"""
Tool definitions for the Capacities MCP server.

Every tool is declared as a ``ToolSpec`` and executed by the single
``ToolAdapter``, which runs the same four steps for each of them:

1. validate the argument bag against the tool's pydantic model
2. resolve the target space (argument, else the configured default)
3. send exactly one request to the Capacities API
4. format the decoded response as text
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type

import mcp.types as types
from pydantic import BaseModel, ValidationError

from .client import CapacitiesClient
from .config import Config
from .types import (
    GetSpacesArgs,
    LookupArgs,
    OutboundCall,
    SaveToDailyNoteArgs,
    SaveWeblinkArgs,
    ToolArgumentError,
    UnknownToolError,
)

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 200
MISSING_SPACE_MESSAGE = "Error: No spaceId provided and CAPACITIES_SPACE_ID is not set."

BodyBuilder = Callable[[Any, Optional[str]], Optional[Dict[str, Any]]]
ResultFormatter = Callable[[Any, Dict[str, Any]], List[str]]


@dataclass(frozen=True)
class ToolSpec:
    """Declarative description of one tool and the API call behind it."""
    name: str
    title: str
    description: str
    args_model: Type[BaseModel]
    method: str
    path: str
    build_body: BodyBuilder
    format_result: ResultFormatter
    needs_space: bool = True
    annotations: Dict[str, bool] = field(default_factory=dict)

    def to_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            title=self.title,
            description=self.description,
            inputSchema=self.args_model.model_json_schema(),
            annotations=types.ToolAnnotations(title=self.title, **self.annotations)
        )


def preview_text(text: str, limit: int = PREVIEW_LENGTH) -> str:
    """Return the text unchanged when short enough, otherwise cut it and add an ellipsis."""
    return text if len(text) <= limit else text[:limit] + "…"


# save_to_daily_note tool

def _daily_note_body(args: SaveToDailyNoteArgs, space_id: Optional[str]) -> Dict[str, Any]:
    body = {"spaceId": space_id, "mdText": args.text}
    if args.noTimestamp:
        body["noTimeStamp"] = True
    return body


def _daily_note_result(args: SaveToDailyNoteArgs, result: Dict[str, Any]) -> List[str]:
    return [f"✅ Saved to Daily Note:\n\n{preview_text(args.text)}"]


# save_weblink tool

def _weblink_body(args: SaveWeblinkArgs, space_id: Optional[str]) -> Dict[str, Any]:
    body: Dict[str, Any] = {"spaceId": space_id, "url": args.url}
    if args.title:
        body["titleOverwrite"] = args.title
    if args.description:
        body["descriptionOverwrite"] = args.description
    if args.notes:
        body["mdText"] = args.notes
    if args.tags is not None:
        body["tags"] = args.tags
    return body


def _weblink_result(args: SaveWeblinkArgs, result: Dict[str, Any]) -> List[str]:
    title = result.get("title") or args.url
    object_id = result.get("id") or "n/a"
    return [f"✅ Weblink saved to Capacities:\n\n**{title}**\n{args.url}\n\nID: {object_id}"]


# get_spaces tool

def _spaces_result(args: GetSpacesArgs, result: Dict[str, Any]) -> List[str]:
    spaces = result.get("spaces") or []
    if not spaces:
        return ["No Capacities spaces are visible to this token."]
    lines = [f"• **{space.get('title')}** (`{space.get('id')}`)" for space in spaces]
    return ["📚 Your Capacities spaces:\n\n" + "\n".join(lines)]


# lookup tool

def _lookup_body(args: LookupArgs, space_id: Optional[str]) -> Dict[str, Any]:
    return {"searchTerm": args.searchTerm, "spaceId": space_id}


def _lookup_result(args: LookupArgs, result: Dict[str, Any]) -> List[str]:
    matches = result.get("results") or []
    if not matches:
        return [f'Nothing found for "{args.searchTerm}"']
    entries = [
        f"• **{match.get('title')}**\n  ID: `{match.get('id')}`\n  Type: {match.get('structureId')}"
        for match in matches
    ]
    return [f'🔍 Results for "{args.searchTerm}":\n\n' + "\n\n".join(entries)]


TOOL_DEFINITIONS: Dict[str, ToolSpec] = {
    spec.name: spec for spec in (
        ToolSpec(
            name="capacities_save_to_daily_note",
            title="Save to Capacities Daily Note",
            description="""Saves text (markdown supported) to today's Daily Note in Capacities.

Use this to capture insights, ideas, tasks, meeting notes: anything that should land in Capacities right now.

Args:
  - text (string): Markdown text to save. Supports headers, lists, bold, links, tasks [ ]
  - spaceId (string, optional): Target space ID. Uses default space if omitted.
  - noTimestamp (boolean, optional): If true, skips automatic timestamp prefix. Default: false.

Returns:
  Confirmation message with the text that was saved.""",
            args_model=SaveToDailyNoteArgs,
            method="POST",
            path="/save-to-daily-note",
            build_body=_daily_note_body,
            format_result=_daily_note_result,
            annotations={
                "readOnlyHint": False,
                "destructiveHint": False,
                "idempotentHint": False,
                "openWorldHint": False
            }
        ),
        ToolSpec(
            name="capacities_save_weblink",
            title="Save Weblink to Capacities",
            description="""Saves a URL to Capacities as a Weblink object with optional notes and tags.

Use to bookmark a page, article, tool or resource directly into the knowledge base.

Args:
  - url (string): The URL to save
  - title (string, optional): Custom title (fetched from URL if omitted)
  - description (string, optional): Custom description
  - notes (string, optional): Markdown notes to attach to the link
  - tags (string[], optional): Tag names (created if they don't exist)
  - spaceId (string, optional): Target space ID

Returns:
  Confirmation with the saved weblink details.""",
            args_model=SaveWeblinkArgs,
            method="POST",
            path="/save-weblink",
            build_body=_weblink_body,
            format_result=_weblink_result,
            annotations={
                "readOnlyHint": False,
                "destructiveHint": False,
                "idempotentHint": False,
                "openWorldHint": True
            }
        ),
        ToolSpec(
            name="capacities_get_spaces",
            title="Get Capacities Spaces",
            description="""Returns a list of your Capacities spaces with their IDs and titles.
Useful to find the correct spaceId when you have multiple spaces.""",
            args_model=GetSpacesArgs,
            method="GET",
            path="/spaces",
            build_body=lambda args, space_id: None,
            format_result=_spaces_result,
            needs_space=False,
            annotations={
                "readOnlyHint": True,
                "destructiveHint": False,
                "idempotentHint": True,
                "openWorldHint": False
            }
        ),
        ToolSpec(
            name="capacities_lookup",
            title="Lookup Content in Capacities",
            description="""Searches for existing content in Capacities by title/name.
Returns matching object IDs and their types. Useful before linking or referencing existing notes.

Args:
  - searchTerm (string): Text to search for in object titles
  - spaceId (string, optional): Space to search in""",
            args_model=LookupArgs,
            method="POST",
            path="/lookup",
            build_body=_lookup_body,
            format_result=_lookup_result,
            annotations={
                "readOnlyHint": True,
                "destructiveHint": False,
                "idempotentHint": True,
                "openWorldHint": False
            }
        ),
    )
}


def get_all_tools(definitions: Optional[Dict[str, ToolSpec]] = None) -> List[types.Tool]:
    """Get all available tools with their definitions."""
    definitions = TOOL_DEFINITIONS if definitions is None else definitions
    return [spec.to_tool() for spec in definitions.values()]


def text_response(*segments: str) -> List[types.TextContent]:
    return [types.TextContent(type="text", text=segment) for segment in segments]


class ToolAdapter:
    """Runs any registered ToolSpec: validate, resolve, invoke, format."""

    def __init__(
        self,
        config: Config,
        client: Optional[CapacitiesClient] = None,
        definitions: Optional[Dict[str, ToolSpec]] = None
    ):
        self.config = config
        self.client = client or CapacitiesClient(config)
        self.definitions = definitions if definitions is not None else TOOL_DEFINITIONS

    def list_tools(self) -> List[types.Tool]:
        return get_all_tools(self.definitions)

    def validate(self, spec: ToolSpec, arguments: Optional[Dict[str, Any]]) -> BaseModel:
        try:
            return spec.args_model.model_validate(arguments or {})
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in error['loc']) or 'arguments'}: {error['msg']}"
                for error in e.errors()
            )
            raise ToolArgumentError(f"Invalid arguments for {spec.name}: {problems}") from e

    def resolve_space(self, args: BaseModel) -> Optional[str]:
        """Explicit spaceId wins over the configured default."""
        return getattr(args, "space_id", None) or self.config.default_space_id

    def build_call(self, spec: ToolSpec, args: BaseModel, space_id: Optional[str]) -> OutboundCall:
        return OutboundCall(method=spec.method, path=spec.path, body=spec.build_body(args, space_id))

    async def invoke(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> List[types.TextContent]:
        """
        Execute one tool invocation.

        Args:
            name: Registered tool name
            arguments: Raw argument bag from the caller

        Returns:
            Text segments for the reply. A missing space id yields an
            explanatory text reply instead of an error.

        Raises:
            UnknownToolError: If no tool has this name
            ToolArgumentError: If arguments fail validation
            CapacitiesAPIError: If the API answers with a non-2xx status
        """
        spec = self.definitions.get(name)
        if spec is None:
            raise UnknownToolError(f"Unknown tool: {name}")

        args = self.validate(spec, arguments)

        space_id = None
        if spec.needs_space:
            space_id = self.resolve_space(args)
            if not space_id:
                logger.warning(f"{name}: no space id available, skipping API call")
                return text_response(MISSING_SPACE_MESSAGE)

        logger.info(f"Tool called: {name}")
        result = await self.client.send(self.build_call(spec, args, space_id))
        return text_response(*spec.format_result(args, result))
