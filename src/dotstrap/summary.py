RULE = "═" * 67


def summaryLines(runState, dryRun=False):
    lines = ["", RULE, "SUMMARY".center(67).rstrip(), RULE]

    if dryRun:
        lines.append("[INFO] Dry run: nothing was changed")
    if runState.linked:
        lines.append(f"[OK] Stowed: {' '.join(runState.linked)}")
    if runState.failed:
        lines.append(f"[ERROR] Failed: {' '.join(runState.failed)}")
    if runState.provisionFailed:
        lines.append(f"[WARN] Provisioning steps failed: {', '.join(runState.provisionFailed)}")
    if runState.backups:
        lines.append("[WARN] Backups created:")
        lines.extend(f"    - {record}" for record in runState.backups)

    lines.append(RULE)
    return lines


def printSummary(runState, echo=print, dryRun=False):
    for line in summaryLines(runState, dryRun=dryRun):
        echo(line)
    return runState.exitCode
