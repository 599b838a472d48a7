"""
L0 Data — Built-in package catalog and category definitions.

Pure data, no logic. Keys are catalog names (unique). ``id`` is the
identifier handed to the backend; ``{php}`` is replaced with the
configured PHP version when the catalog is built.
"""

from __future__ import annotations

# (category id, display name), in menu order
CATEGORIES: list[tuple[str, str]] = [
    ("core", "Core Utilities"),
    ("dev", "Development Tools"),
    ("ai", "AI & LLM Tools"),
    ("containers", "Containers & Orchestration"),
    ("web", "Web Stack"),
    ("shell", "Shells & Customization"),
    ("editors", "Editors & IDEs"),
    ("browsers", "Web Browsers"),
    ("monitoring", "System Monitoring"),
    ("security", "Security Tools"),
    ("system", "System Tools"),
    ("office", "Office & Productivity"),
    ("communication", "Communication"),
    ("multimedia", "Multimedia & Graphics"),
    ("cloud", "Cloud & Sync"),
    ("terminals", "Terminals"),
    ("gaming", "Gaming"),
    ("development", "Development Platforms"),
]


PACKAGES: dict[str, dict[str, str]] = {

    # ── Core utilities ──────────────────────────────────────────

    "git": {"id": "git", "backend": "apt", "category": "core",
            "description": "Version control system"},
    "curl": {"id": "curl", "backend": "apt", "category": "core",
             "description": "Command line tool for transferring data"},
    "wget": {"id": "wget", "backend": "apt", "category": "core",
             "description": "Network downloader"},
    "build-essential": {"id": "build-essential", "backend": "apt", "category": "core",
                        "description": "Compilation tools (gcc, make, etc)"},
    "tree": {"id": "tree", "backend": "apt", "category": "core",
             "description": "Directory listing in tree format"},
    "ncdu": {"id": "ncdu", "backend": "apt", "category": "core",
             "description": "NCurses Disk Usage analyzer"},
    "jq": {"id": "jq", "backend": "apt", "category": "core",
           "description": "JSON processor"},
    "tmux": {"id": "tmux", "backend": "apt", "category": "core",
             "description": "Terminal multiplexer"},
    "fzf": {"id": "fzf", "backend": "apt", "category": "core",
            "description": "Fuzzy finder"},
    "ripgrep": {"id": "ripgrep", "backend": "apt", "category": "core",
                "description": "Fast grep alternative (rg)"},
    "bat": {"id": "bat", "backend": "apt", "category": "core",
            "description": "Cat clone with syntax highlighting"},
    "eza": {"id": "eza", "backend": "apt", "category": "core",
            "description": "Modern ls replacement"},
    "tldr": {"id": "tldr", "backend": "apt", "category": "core",
             "description": "Simplified man pages"},

    # ── Development tools ───────────────────────────────────────

    "neovim": {"id": "neovim", "backend": "apt", "category": "dev",
               "description": "Modern Vim-based editor"},
    "python3-pip": {"id": "python3-pip", "backend": "apt", "category": "dev",
                    "description": "Python package installer"},
    "python3-venv": {"id": "python3-venv", "backend": "apt", "category": "dev",
                     "description": "Python virtual environments"},
    "default-jdk": {"id": "default-jdk", "backend": "apt", "category": "dev",
                    "description": "Java Development Kit"},
    "golang": {"id": "golang-go", "backend": "apt", "category": "dev",
               "description": "Go programming language"},
    "nodejs": {"id": "nodejs", "backend": "custom", "category": "dev",
               "description": "Node.js JavaScript runtime (NodeSource LTS)"},
    "npm": {"id": "npm", "backend": "apt", "category": "dev",
            "description": "Node package manager"},
    "typescript": {"id": "typescript", "backend": "npm", "category": "dev",
                   "description": "TypeScript compiler (global npm package)"},
    "pnpm": {"id": "pnpm", "backend": "npm", "category": "dev",
             "description": "Fast, disk-efficient Node package manager"},
    "tokei": {"id": "tokei", "backend": "cargo", "category": "dev",
              "description": "Count lines of code (cargo crate)"},
    "bottom": {"id": "bottom", "backend": "cargo", "category": "monitoring",
               "description": "Graphical process monitor, btm (cargo crate)"},

    # ── Containers ──────────────────────────────────────────────

    "docker": {"id": "docker-ce", "backend": "custom", "category": "containers",
               "description": "Docker container platform"},
    "docker-compose": {"id": "docker-compose-plugin", "backend": "apt",
                       "category": "containers", "dependency": "docker",
                       "description": "Docker Compose plugin"},

    # ── Web stack ───────────────────────────────────────────────

    "nginx": {"id": "nginx", "backend": "apt", "category": "web",
              "description": "High-performance web server"},
    "apache2": {"id": "apache2", "backend": "apt", "category": "web",
                "description": "Apache HTTP Server"},
    "php-fpm": {"id": "php{php}-fpm", "backend": "apt", "category": "web",
                "description": "PHP FastCGI Process Manager"},
    "libapache2-mod-php": {"id": "libapache2-mod-php{php}", "backend": "apt", "category": "web",
                           "description": "PHP module for Apache"},
    "php-mysql": {"id": "php{php}-mysql", "backend": "apt", "category": "web",
                  "description": "PHP MySQL extension"},
    "php-curl": {"id": "php{php}-curl", "backend": "apt", "category": "web",
                 "description": "PHP cURL extension"},
    "php-gd": {"id": "php{php}-gd", "backend": "apt", "category": "web",
               "description": "PHP GD graphics extension"},
    "php-xml": {"id": "php{php}-xml", "backend": "apt", "category": "web",
                "description": "PHP XML extension"},
    "php-mbstring": {"id": "php{php}-mbstring", "backend": "apt", "category": "web",
                     "description": "PHP multibyte string extension"},
    "php-zip": {"id": "php{php}-zip", "backend": "apt", "category": "web",
                "description": "PHP ZIP extension"},
    "mariadb": {"id": "mariadb-server", "backend": "apt", "category": "web",
                "description": "MariaDB database server"},
    "certbot": {"id": "certbot", "backend": "apt", "category": "web",
                "description": "Let's Encrypt SSL certificate tool"},
    "python3-certbot-nginx": {"id": "python3-certbot-nginx", "backend": "apt", "category": "web",
                              "dependency": "certbot",
                              "description": "Certbot Nginx plugin"},
    "python3-certbot-apache": {"id": "python3-certbot-apache", "backend": "apt", "category": "web",
                               "dependency": "certbot",
                               "description": "Certbot Apache plugin"},
    "redis": {"id": "redis-server", "backend": "apt", "category": "web",
              "description": "Redis in-memory data store"},

    # ── Shells ──────────────────────────────────────────────────

    "zsh": {"id": "zsh", "backend": "apt", "category": "shell",
            "description": "Z shell"},
    "fonts-powerline": {"id": "fonts-powerline", "backend": "apt", "category": "shell",
                        "description": "Powerline fonts"},

    # ── Editors & IDEs ──────────────────────────────────────────

    "vscode": {"id": "code", "backend": "custom", "category": "editors",
               "description": "Visual Studio Code (Microsoft APT repository)"},
    "vscode-snap": {"id": "code", "backend": "snap", "category": "editors",
                    "description": "Visual Studio Code (Snap)"},
    "vscode-flatpak": {"id": "com.visualstudio.code", "backend": "flatpak",
                       "category": "editors",
                       "description": "Visual Studio Code (Flatpak)"},
    "sublime-text": {"id": "sublime-text", "backend": "custom", "category": "editors",
                     "description": "Sublime Text editor"},

    # ── Browsers ────────────────────────────────────────────────

    "brave": {"id": "brave-browser", "backend": "custom", "category": "browsers",
              "description": "Brave web browser"},
    "firefox": {"id": "firefox", "backend": "apt", "category": "browsers",
                "description": "Mozilla Firefox browser"},
    "chromium": {"id": "chromium", "backend": "apt", "category": "browsers",
                 "description": "Chromium web browser"},

    # ── Monitoring ──────────────────────────────────────────────

    "htop": {"id": "htop", "backend": "apt", "category": "monitoring",
             "description": "Interactive process viewer"},
    "btop": {"id": "btop", "backend": "apt", "category": "monitoring",
             "description": "Resource monitor with better graphs"},
    "glances": {"id": "glances", "backend": "apt", "category": "monitoring",
                "description": "Cross-platform system monitor"},
    "nethogs": {"id": "nethogs", "backend": "apt", "category": "monitoring",
                "description": "Network bandwidth monitor per process"},
    "iotop": {"id": "iotop", "backend": "apt", "category": "monitoring",
              "description": "I/O monitor"},

    # ── Security ────────────────────────────────────────────────

    "ufw": {"id": "ufw", "backend": "apt", "category": "security",
            "description": "Uncomplicated Firewall"},
    "fail2ban": {"id": "fail2ban", "backend": "apt", "category": "security",
                 "description": "Intrusion prevention system"},

    # ── System ──────────────────────────────────────────────────

    "flatpak": {"id": "flatpak", "backend": "apt", "category": "system",
                "description": "Flatpak package manager"},

    # ── Office ──────────────────────────────────────────────────

    "libreoffice": {"id": "libreoffice", "backend": "apt", "category": "office",
                    "description": "LibreOffice office suite"},
    "thunderbird": {"id": "thunderbird", "backend": "apt", "category": "office",
                    "description": "Thunderbird email client"},

    # ── Communication ───────────────────────────────────────────

    "localsend": {"id": "org.localsend.localsend_app", "backend": "flatpak",
                  "category": "communication", "dependency": "flatpak",
                  "description": "LocalSend file sharing"},
    "discord": {"id": "discord", "backend": "snap", "category": "communication",
                "description": "Discord voice and text chat"},
    "telegram-desktop": {"id": "telegram-desktop", "backend": "apt", "category": "communication",
                         "description": "Telegram messaging app"},
    "zoom": {"id": "zoom-client", "backend": "snap", "category": "communication",
             "description": "Zoom video conferencing"},

    # ── Multimedia ──────────────────────────────────────────────

    "spotify": {"id": "spotify", "backend": "snap", "category": "multimedia",
                "description": "Music streaming service"},
    "obs-studio": {"id": "obs-studio", "backend": "apt", "category": "multimedia",
                   "description": "OBS Studio streaming/recording"},
    "vlc": {"id": "vlc", "backend": "apt", "category": "multimedia",
            "description": "VLC media player"},
    "gimp": {"id": "gimp", "backend": "apt", "category": "multimedia",
             "description": "GIMP image editor"},
    "audacity": {"id": "audacity", "backend": "apt", "category": "multimedia",
                 "description": "Audacity audio editor"},
    "blender": {"id": "blender", "backend": "snap", "category": "multimedia",
                "description": "Blender 3D creation suite"},
    "inkscape": {"id": "inkscape", "backend": "apt", "category": "multimedia",
                 "description": "Inkscape vector graphics editor"},
    "ffmpeg": {"id": "ffmpeg", "backend": "apt", "category": "multimedia",
               "description": "Complete multimedia processing toolkit"},
    "yt-dlp": {"id": "yt-dlp", "backend": "custom", "category": "multimedia",
               "description": "Modern YouTube/media downloader (youtube-dl fork)"},

    # ── Cloud ───────────────────────────────────────────────────

    "rclone": {"id": "rclone", "backend": "apt", "category": "cloud",
               "description": "Cloud storage sync tool"},

    # ── Terminals ───────────────────────────────────────────────

    "warp-terminal": {"id": "warp-terminal", "backend": "custom", "category": "terminals",
                      "description": "Modern terminal with AI features"},

    # ── Gaming ──────────────────────────────────────────────────

    "steam": {"id": "steam", "backend": "apt", "category": "gaming",
              "description": "Steam gaming platform"},
    "heroic-launcher": {"id": "com.heroicgameslauncher.hgl", "backend": "flatpak",
                        "category": "gaming", "dependency": "flatpak",
                        "description": "Open-source Epic Games/GOG launcher"},

    # ── AI ──────────────────────────────────────────────────────

    "ollama": {"id": "ollama", "backend": "custom", "category": "ai",
               "description": "Local AI model runner (Llama, Mistral, etc.)"},
    "gollama": {"id": "gollama", "backend": "custom", "category": "ai",
                "dependency": "ollama",
                "description": "Advanced LLM model management and interaction tool"},

    # ── Development platforms ───────────────────────────────────

    "postman": {"id": "postman", "backend": "snap", "category": "development",
                "description": "API development platform"},
    "n8n": {"id": "n8n", "backend": "custom", "category": "development",
            "dependency": "nodejs",
            "description": "Workflow automation tool (self-hosted Zapier alternative)"},
}


# Snaps that are published with classic confinement and need --classic.
SNAP_CLASSIC: frozenset[str] = frozenset({
    "code",
    "code-insiders",
    "sublime-text",
    "slack",
    "skype",
    "pycharm-community",
    "pycharm-professional",
    "intellij-idea-community",
    "intellij-idea-ultimate",
    "android-studio",
    "go",
    "node",
    "rustup",
    "helm",
    "kubectl",
    "powershell",
    "flutter",
})
