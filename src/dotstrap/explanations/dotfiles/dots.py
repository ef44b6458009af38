class DotfilesExplain():
    def explain_dotfiles(self, detail_level='basic'):
        return {
            'concept': 'Linking Dotfiles with Stow',
            'what': 'Each top-level folder of the dotfiles checkout (`nvim`, `zsh`, `tmux`, ...) is a package: a tree laid out exactly as it should appear under your home directory. `dotstrap run` links every package declared for your platform into `~` with GNU Stow.',
            'why': 'Keeping configs in one version-controlled checkout and linking them into place makes a machine reproducible. Editing `~/.config/nvim/init.lua` edits the file in the checkout.',
            'how': 'Packages are processed in their declared order. For each one the target is resolved, conflicting real files are backed up, then `stow --restow` links it. A package that fails is reported and the next one is still processed.',
            'commands': ['stow', 'mv'],
            'files': ['~/.config/', '~/.zshrc', '~/.local/state/dotstrap/'],
            'examples': [
                {
                    'yaml': """arch:
  packages: [nvim, zsh, hypr]
  targets:
    nvim: .config/nvim
    zsh: .zshrc
    hypr: merge
""",
                }
            ],
            'learn_more': ['GNU Stow manual', 'Dotfiles on Arch Wiki']
        }

    def explain_backup(self, detail_level='basic'):
        """Explains what happens to files already in the way"""
        return {
            'concept': 'Backups Before Linking',
            'what': 'If a real file or directory sits where a link should go, it is renamed to `<name>.bak.<YYYYMMDDHHMMSS>` before linking.',
            'why': 'Stow refuses to overwrite real files. Moving them aside lets the link go in without losing anything you had.',
            'how': 'Symlinks are never backed up, since replacing a link loses no content. If two backups land in the same second, a counter is appended (`.bak.20250101120000.1`) so no backup overwrites another. Every backup is listed in the final summary.',
            'equivalent': """# Equivalent of backing up ~/.zshrc
mv ~/.zshrc ~/.zshrc.bak.$(date +%Y%m%d%H%M%S)
""",
        }

    def explain_merge(self, detail_level='basic'):
        """Explains packages linked into a shared directory"""
        return {
            'concept': 'Merge Discovery (target: merge)',
            'what': 'A package with `merge` as its target is stowed into a directory that already holds other files, like a `~/.config/hypr` shipped by the distribution.',
            'why': 'Which paths will collide cannot be known from a single path, because only the files the package actually contains are linked into the shared directory.',
            'how': 'Stow is first run in simulate mode (`--no`) and its conflict report is read to get the exact colliding paths. Those are backed up and the real run follows. A simulate failure that reports no readable conflicts marks the package failed.',
            'equivalent': """# Equivalent of discovering conflicts for 'hypr'
stow --dir ~/dotfiles --target ~ --no --verbose=1 --restow hypr
""",
        }

    def explain_state(self, detail_level='basic'):
        """Explains the recorded run summary"""
        return {
            'concept': 'Run Record',
            'what': 'After every run the linked, failed and backed-up paths are written to `~/.local/state/dotstrap/last_run.yaml`.',
            'why': 'So you can look up where a backup went, or which package failed, after the terminal output is gone.',
            'how': '`dotstrap status` prints the last record. Re-running `dotstrap run` is always safe: already linked packages produce no new backups.',
        }
