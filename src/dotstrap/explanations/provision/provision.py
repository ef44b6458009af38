class ProvisionExplain():
    def explain_provision(self, detail_level='basic'):
        return {
            'concept': 'Provisioning Dependencies',
            'what': 'Before linking, the tools the configs rely on are installed: Stow, Neovim, tmux, Starship, Ghostty, a Nerd Font, Oh-My-Zsh, Bun, and zsh as the login shell. On macOS Homebrew itself is installed first.',
            'why': 'Linked configs are only useful if the programs reading them exist.',
            'how': 'Each step runs through pyinfra on the local machine. Packages go through pacman or Homebrew, which skip what is installed. Oh-My-Zsh and Bun are only fetched when their directory or executable is missing. The login shell is only changed when it differs. A failing step is reported and the run carries on to linking.',
            'commands': ['pacman', 'brew', 'curl', 'chsh'],
            'files': ['~/.oh-my-zsh', '~/.bun'],
            'equivalent': """# Equivalent on Arch Linux
sudo pacman -S --needed --noconfirm stow neovim tmux starship ghostty ttf-jetbrains-mono-nerd zsh
[ -d ~/.oh-my-zsh ] || sh -c "$(curl -fsSL https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh)" "" --unattended
command -v bun || curl -fsSL https://bun.sh/install | bash
""",
        }
