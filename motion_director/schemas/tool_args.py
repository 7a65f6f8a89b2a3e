"""Argument schemas for the director tool catalog (wire keys are camelCase)"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ToolArgs(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


AssetCategory = Literal["images", "audio", "video"]


class WriteFileArgs(ToolArgs):
    path: str = Field(description="File path, e.g. 'Main.tsx' or 'scenes/Intro.tsx'")
    content: str = Field(description="Complete file content")


class ReadFileArgs(ToolArgs):
    path: str = Field(description="File path to read")


class ListFilesArgs(ToolArgs):
    directory: str = Field("", description="Directory to list; defaults to src/")


class DeleteFileArgs(ToolArgs):
    path: str = Field(description="File path to delete")


class LineEdit(ToolArgs):
    start_line: int = Field(ge=1, description="First line to replace (1-based, inclusive)")
    end_line: int = Field(ge=1, description="Last line to replace (1-based, inclusive)")
    new_content: str = Field(description="Replacement text for the line range")


class AtomicEditArgs(ToolArgs):
    path: str = Field(description="File path to edit")
    edits: List[LineEdit] = Field(min_length=1, description="Line-range replacements, based on read_file line numbers")


class GetMyAssetsArgs(ToolArgs):
    category: Optional[AssetCategory] = Field(None, description="Limit to one asset category")


class ValidateSyntaxArgs(ToolArgs):
    path: Optional[str] = Field(None, description="File to check; omit to check every source file")


class RegisterCompositionArgs(ToolArgs):
    component_name: str = Field(description="Exported component name, e.g. 'Main'")
    import_path: str = Field(description="Module path without extension, e.g. 'Main'")
    duration_in_frames: int = Field(gt=0, description="Total composition length in frames")
    fps: int = Field(30, gt=0, description="Frames per second")
    width: int = Field(1920, gt=0, description="Width in pixels")
    height: int = Field(1080, gt=0, description="Height in pixels")


class DeployProjectArgs(ToolArgs):
    message: str = Field("", description="Short description of this deployment")


class UpdateLogArgs(ToolArgs):
    total_duration: Optional[int] = Field(None, gt=0, description="Composition length in frames")
    fps: Optional[int] = Field(None, gt=0, description="Frames per second")
    entry_file: Optional[str] = Field(None, description="Entry file name")
    brand_name: Optional[str] = Field(None, description="Brand or product name")
    logo: Optional[str] = Field(None, description="Logo image file name")
    colors: Optional[List[str]] = Field(None, description="Brand palette as hex colors")
    style: Optional[str] = Field(None, description="Visual style keywords")
    font: Optional[str] = Field(None, description="Primary font family")
    note: Optional[str] = Field(None, description="Progress note to remember")


class RecordDecisionArgs(ToolArgs):
    what: str = Field(description="The decision taken")
    why: str = Field("", description="Reason for the decision")
    file: Optional[str] = Field(None, description="File the decision applies to")


class InstallPackageArgs(ToolArgs):
    packages: List[str] = Field(min_length=1, description="npm package names")


class DownloadAssetArgs(ToolArgs):
    url: str = Field(description="HTTP(S) URL of the asset")
    filename: str = Field(description="File name to save as, e.g. 'whoosh.mp3'")
    category: AssetCategory = Field(description="Asset category folder")


class PlanScene(ToolArgs):
    name: str = Field(description="Scene component name")
    description: str = Field("", description="What happens in the scene")
    duration_in_frames: int = Field(gt=0, description="Scene length in frames")


class CreateProjectPlanArgs(ToolArgs):
    title: str = Field(description="Video title")
    scenes: List[PlanScene] = Field(min_length=1, description="Planned scenes in order")
    style: Optional[str] = Field(None, description="Visual style summary")


class ReadProjectPlanArgs(ToolArgs):
    pass


class UpdateProjectPlanArgs(ToolArgs):
    section: str = Field(description="Scene name or plan section being updated")
    note: str = Field(description="Progress note")
    status: Literal["todo", "in_progress", "done"] = Field("in_progress", description="Status of the section")
