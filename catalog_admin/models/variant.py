import base64
from dataclasses import dataclass, field


@dataclass
class StagedFile:
    """A locally picked image waiting for the next submission."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self):
        return len(self.data)

    def as_upload(self):
        return (self.filename, self.data, self.content_type)

    def to_state(self):
        return {
            "filename": self.filename,
            "content_type": self.content_type,
            "data": base64.b64encode(self.data).decode("ascii"),
        }

    @classmethod
    def from_state(cls, state):
        return cls(
            filename=state["filename"],
            content_type=state["content_type"],
            data=base64.b64decode(state["data"]),
        )


@dataclass
class ColorVariant:
    """One color owning both its saved image URLs and its staged files."""

    name: str = ""
    image_urls: list = field(default_factory=list)
    staged_files: list = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        images = data.get("images") or []
        return cls(name=data.get("name") or "", image_urls=[str(u) for u in images])

    def to_dict(self):
        """Wire shape: saved URLs only, staged files travel as binary parts."""
        return {"name": self.name, "images": [u for u in self.image_urls if u.strip()]}

    def to_state(self):
        return {
            "name": self.name,
            "image_urls": list(self.image_urls),
            "staged_files": [f.to_state() for f in self.staged_files],
        }

    @classmethod
    def from_state(cls, state):
        return cls(
            name=state.get("name", ""),
            image_urls=list(state.get("image_urls", [])),
            staged_files=[StagedFile.from_state(s) for s in state.get("staged_files", [])],
        )
