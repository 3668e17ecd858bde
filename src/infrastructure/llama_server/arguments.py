"""Command-line construction for the llama-server child process."""

from pydantic import BaseModel, ConfigDict, Field

from src.config import LLAMA_SERVER_PORT

# Flags that turn on the /embedding endpoint with CLS pooling
EMBEDDING_FLAGS = ("--embedding", "--pooling", "cls", "-ub", "8192")


class LlamaServerConfig(BaseModel):
    """Options for one llama-server launch.

    Accepts both snake_case names and the camelCase keys sent by the UI.
    """

    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_path: str = Field(alias="modelPath", min_length=1)
    gpu_layers: int = Field(alias="gpuLayers", ge=0)
    context_size: int = Field(alias="contextSize", gt=0)
    threads: int = Field(gt=0)
    flash_attention: bool = Field(default=False, alias="flashAttn")
    main_gpu: int = Field(default=0, alias="mainGpu", ge=0)
    tensor_split: str | None = Field(default=None, alias="tensorSplit")
    embedding: bool = False

    # Extra switches; the defaults add nothing to the command line
    use_mmap: bool = Field(default=True, alias="useMmap")
    context_shift: bool = Field(default=True, alias="contextShift")
    quiet: bool = Field(default=False, alias="quietMode")


def build_server_args(
    config: LlamaServerConfig,
    *,
    port: int = LLAMA_SERVER_PORT,
) -> list[str]:
    """Build the llama-server argument list for a launch.

    The order is fixed so the same config always yields the same command.

    Args:
        config: Launch options.
        port: Listening port; the sidecar always uses 8080.

    Returns:
        Arguments to pass after the binary path.
    """
    args = [
        "-m", config.model_path,
        "--port", str(port),
        "-c", str(config.context_size),
        "-t", str(config.threads),
        "-ngl", str(config.gpu_layers),
        "-mg", str(config.main_gpu),
    ]  # fmt: skip

    if config.embedding:
        args.extend(EMBEDDING_FLAGS)

    if config.flash_attention:
        args.append("-fa")

    if config.tensor_split is not None and config.tensor_split.strip():
        args.extend(["-ts", config.tensor_split])

    if not config.use_mmap:
        args.append("--no-mmap")
    if not config.context_shift:
        args.append("--no-context-shift")
    if config.quiet:
        args.append("--log-disable")

    return args
