"""Base image every jail container starts from."""
from rich.console import Console

from jail.core.logger import get_logger
from jail.services.engine import ContainerEngine

logger = get_logger(__name__)
console = Console()

IMAGE_NAME = "jail-dev:latest"

DOCKERFILE = r"""FROM ubuntu:24.04

# Avoid interactive prompts
ENV DEBIAN_FRONTEND=noninteractive

# Base packages plus VSCode Server dependencies
RUN apt-get update && apt-get install -y \
    git \
    build-essential \
    curl \
    wget \
    sudo \
    vim \
    openssh-client \
    ca-certificates \
    libxkbfile1 \
    libsecret-1-0 \
    libnss3 \
    libatk1.0-0 \
    libatk-bridge2.0-0 \
    libdrm2 \
    libgtk-3-0 \
    libgbm1 \
    libasound2t64 \
    && rm -rf /var/lib/apt/lists/*

# Non-root user with passwordless sudo
RUN useradd -m -s /bin/bash dev && \
    echo "dev ALL=(ALL) NOPASSWD:ALL" >> /etc/sudoers

USER dev
WORKDIR /home/dev

# Node.js via nvm
ENV NVM_DIR=/home/dev/.nvm
RUN curl -o- https://raw.githubusercontent.com/nvm-sh/nvm/v0.40.1/install.sh | bash && \
    . "$NVM_DIR/nvm.sh" && \
    nvm install --lts && \
    nvm use --lts

# Rust via rustup
RUN curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh -s -- -y
ENV PATH="/home/dev/.cargo/bin:${PATH}"

USER root
RUN apt-get update && apt-get install -y python3-pip python3-venv && rm -rf /var/lib/apt/lists/*
USER dev

RUN . "$NVM_DIR/nvm.sh" && npm install -g @anthropic-ai/claude-code

RUN echo 'export NVM_DIR="$HOME/.nvm"' >> ~/.bashrc && \
    echo '[ -s "$NVM_DIR/nvm.sh" ] && \. "$NVM_DIR/nvm.sh"' >> ~/.bashrc && \
    echo '[ -s "$NVM_DIR/bash_completion" ] && \. "$NVM_DIR/bash_completion"' >> ~/.bashrc

WORKDIR /workspace

CMD ["/bin/bash"]
"""


def image_exists(engine: ContainerEngine) -> bool:
    return engine.image_exists(IMAGE_NAME)


def build_image(engine: ContainerEngine) -> None:
    """Build the base image (this may take a few minutes)."""
    console.print(
        f"[cyan]→[/cyan] Building [cyan]{IMAGE_NAME}[/cyan] image (this may take a few minutes)..."
    )
    engine.build_image(IMAGE_NAME, DOCKERFILE)
    console.print(f"[green]✓[/green] Image [cyan]{IMAGE_NAME}[/cyan] built successfully")


def ensure_image(engine: ContainerEngine) -> bool:
    """Build the base image unless it already exists.

    Returns:
        True if a build was performed
    """
    if image_exists(engine):
        logger.debug(f"Base image {IMAGE_NAME} present")
        return False
    build_image(engine)
    return True
