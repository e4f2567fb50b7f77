"""Archive module manifest — tool definitions."""

from shared.schemas.tools import ModuleManifest, ToolDefinition, ToolParameter

MANIFEST = ModuleManifest(
    module_name="archive",
    description=(
        "Per-channel image archive. Upload images as batches, then show a random "
        "batch, a specific batch, search by name, or delete archived images."
    ),
    tools=[
        ToolDefinition(
            name="archive.upload_images",
            description=(
                "Archive every image of the current message as one batch. Returns the "
                "batch ID and the stored file name of each image."
            ),
            parameters=[
                ToolParameter(
                    name="image_urls",
                    type="array",
                    description="Image URLs to archive",
                    required=False,
                ),
                ToolParameter(
                    name="content",
                    type="string",
                    description="Raw message content; embedded image tags are extracted",
                    required=False,
                ),
                ToolParameter(
                    name="name",
                    type="string",
                    description="Label stored in every file name of the batch",
                    required=False,
                ),
            ],
            required_permission="guest",
        ),
        ToolDefinition(
            name="archive.save_image",
            description="Archive a single image outside any batch, optionally under a custom file name.",
            parameters=[
                ToolParameter(name="url", type="string", description="Image URL"),
                ToolParameter(
                    name="file_name",
                    type="string",
                    description="Custom file name (extension optional)",
                    required=False,
                ),
            ],
            required_permission="guest",
        ),
        ToolDefinition(
            name="archive.random_batch",
            description="Show all images of a randomly chosen batch from this channel's archive.",
            parameters=[
                ToolParameter(
                    name="batch_only",
                    type="boolean",
                    description="Only return the batch ID without images",
                    required=False,
                ),
            ],
            required_permission="guest",
        ),
        ToolDefinition(
            name="archive.show_batch",
            description="Show the images of one batch in upload order.",
            parameters=[
                ToolParameter(name="batch_id", type="string", description="6-character batch ID"),
            ],
            required_permission="guest",
        ),
        ToolDefinition(
            name="archive.search_images",
            description="Find archived images whose file name contains a keyword, newest first.",
            parameters=[
                ToolParameter(name="keyword", type="string", description="Substring to look for"),
                ToolParameter(
                    name="show",
                    type="boolean",
                    description="Also return paths of the first few matching images",
                    required=False,
                ),
            ],
            required_permission="guest",
        ),
        ToolDefinition(
            name="archive.random_images",
            description="Return random archived images without repeats.",
            parameters=[
                ToolParameter(
                    name="count",
                    type="integer",
                    description="Number of images (default 1)",
                    required=False,
                ),
            ],
            required_permission="guest",
        ),
        ToolDefinition(
            name="archive.list_images",
            description="List every archived file name in this channel.",
            parameters=[],
            required_permission="guest",
        ),
        ToolDefinition(
            name="archive.delete_image",
            description=(
                "Delete the archived image whose name contains the given text. "
                "Nothing is deleted when several images match."
            ),
            parameters=[
                ToolParameter(name="file_name", type="string", description="Full or partial file name"),
            ],
            required_permission="user",
        ),
    ],
)
